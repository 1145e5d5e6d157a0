"""Baidu Netdisk (pan.baidu.com) share-link checker.

Share links follow two shapes:
    https://pan.baidu.com/s/{surl}[?pwd={code}]
    https://pan.baidu.com/share/init?surl={surl}[&pwd={code}]

The leading character of ``surl`` is a type tag; the web API expects the
remainder ("shorturl").

Password-protected shares need a session token first:
    POST https://pan.baidu.com/share/verify?surl={shorturl}&pwd={code}
    -> {"errno": 0, "randsk": "..."}

Liveness is then probed via the listing call, with the token attached as
the ``BDCLND`` cookie:
    GET https://pan.baidu.com/share/list?...&shorturl={shorturl}
    -> {"errno": 0, ...} | {"errno": -9, ...}
"""

from __future__ import annotations

import json
import math
import re
from typing import Any
from urllib.parse import parse_qs, parse_qsl, quote, unquote, urlencode, urlsplit

import httpx
import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from pancheck.domain.entities.check import (
    CheckFailure,
    CheckResult,
    FailureKind,
    Platform,
    ProviderResponse,
    ShareIdentifier,
    ShareTarget,
)
from pancheck.infrastructure.checkers.base import BaseChecker
from pancheck.infrastructure.checkers.messages import DEFAULT_LOCALE, render

log = structlog.get_logger(__name__)

_HOSTS = ("pan.baidu.com", "yun.baidu.com")

# First share-URL occurrence in free text, either scheme, either host.
_SHARE_URL_RE = re.compile(r"https?://(?:pan|yun)\.baidu\.com/(?:s/|share/init)")

# Chat-style annotations that often follow a pasted link without a space.
_TRAILING_KEYWORDS = ("提取码", "密码", "访问码")

_SHORT_PATH_PREFIX = "/s/"
_INIT_PATH_PREFIX = "/share/init"
_SURL_PARAM = "surl"
_PASSWORD_PARAM = "pwd"

# Characters left as-is when percent-encoding path and fragment; "%" keeps
# already-encoded input stable.
_PATH_SAFE = "/%"
_FRAGMENT_SAFE = "/%=&?:@!$'()*+,;"

_VERIFY_URL = "https://pan.baidu.com/share/verify"
_LIST_URL = "https://pan.baidu.com/share/list"

# Order and the duplicated "web" key mirror what the web client sends.
_LIST_PARAMS: tuple[tuple[str, str], ...] = (
    ("web", "5"),
    ("app_id", "250528"),
    ("desc", "1"),
    ("showempty", "0"),
    ("page", "1"),
    ("num", "20"),
    ("order", "time"),
)
_LIST_PARAMS_TAIL: tuple[tuple[str, str], ...] = (
    ("root", "1"),
    ("view_mode", "1"),
    ("channel", "chunlei"),
    ("web", "1"),
    ("clienttype", "0"),
)

RATE_LIMITED_ERRNO = -62

# Append-only: errno -> message id.
_ERRNO_MESSAGES: dict[int, str] = {
    -12: "code_missing_password",
    -9: "code_wrong_password",
    RATE_LIMITED_ERRNO: "code_rate_limited",
    -8: "code_expired",
    -7: "code_deleted",
    -21: "code_cancelled",
    105: "code_not_found",
    115: "code_blocked",
}


# ---------------------------------------------------------------------------
# URL normalization and identifier extraction
# ---------------------------------------------------------------------------


def _truncate_candidate(text: str) -> str:
    """Cut *text* at the first whitespace or trailing annotation keyword."""
    for idx, char in enumerate(text):
        if char.isspace() or text.startswith(_TRAILING_KEYWORDS, idx):
            return text[:idx]
    return text


def normalize_share_url(text: str, locale: str = DEFAULT_LOCALE) -> str:
    """Extract the share URL from free-form text and re-encode its query.

    Raises:
        CheckFailure: ``MALFORMED_INPUT`` when no share URL is present or
            the candidate cannot be parsed.
    """
    match = _SHARE_URL_RE.search(text)
    if match is None:
        raise CheckFailure(
            FailureKind.MALFORMED_INPUT,
            render(
                "url_normalize_failed",
                locale,
                error=render("url_not_found", locale),
            ),
        )

    candidate = _truncate_candidate(text[match.start():])
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise CheckFailure(
            FailureKind.MALFORMED_INPUT,
            render(
                "url_normalize_failed",
                locale,
                error=render("url_parse_failed", locale, error=str(exc)),
            ),
        ) from exc

    host = parts.netloc.rpartition("@")[2]
    # Pure ASCII output: the URL doubles as the Referer header value.
    normalized = f"{parts.scheme}://{host}{quote(parts.path, safe=_PATH_SAFE)}"
    if parts.query:
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        # Stable sort by key keeps repeated values in their original order.
        normalized += "?" + urlencode(sorted(pairs, key=lambda kv: kv[0]))
    if parts.fragment:
        normalized += "#" + quote(parts.fragment, safe=_FRAGMENT_SAFE)
    return normalized


def extract_share_id(url: str) -> str:
    """Return the share identifier (surl) of a normalized URL, or ``""``."""
    parts = urlsplit(url)
    if parts.hostname not in _HOSTS:
        return ""

    path = unquote(parts.path)
    if path.startswith(_SHORT_PATH_PREFIX):
        surl = path[len(_SHORT_PATH_PREFIX):]
        # Malformed links sometimes carry an encoded query inside the path.
        return surl.split("?", 1)[0]

    if path.startswith(_INIT_PATH_PREFIX):
        values = parse_qs(parts.query).get(_SURL_PARAM)
        return values[0] if values else ""

    return ""


def short_id(full_id: str) -> str:
    """Drop the leading type-tag character of a share identifier."""
    if len(full_id) > 1:
        return full_id[1:]
    return full_id


def extract_password(url: str) -> str:
    """Return the extraction code carried in the URL query, or ``""``."""
    values = parse_qs(urlsplit(url).query).get(_PASSWORD_PARAM)
    return values[0] if values else ""


# ---------------------------------------------------------------------------
# Provider calls
# ---------------------------------------------------------------------------


def _numeric_errno(data: dict[str, Any]) -> int | None:
    value = data.get("errno")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _error_message(data: dict[str, Any]) -> str:
    for key in ("errmsg", "err_msg"):
        value = data.get(key)
        if isinstance(value, str):
            return value
    return ""


async def verify_pass_code(
    http: httpx.AsyncClient,
    share_url: str,
    shorturl: str,
    password: str,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """Exchange an extraction code for a ``randsk`` session token.

    Raises:
        CheckFailure: ``NETWORK_FAILURE``, ``VERIFICATION_FAILED`` or
            ``MALFORMED_VERIFICATION_RESPONSE``.
    """
    try:
        resp = await http.post(
            _VERIFY_URL,
            params={"surl": shorturl, "pwd": password},
            data={"pwd": password, "vcode": "", "vcode_str": ""},
            headers={"Referer": share_url},
        )
    except httpx.HTTPError as exc:
        log.warning("baidu_verify_request_failed", shorturl=shorturl, error=str(exc))
        raise CheckFailure(
            FailureKind.NETWORK_FAILURE,
            render("network_failure", locale, error=str(exc) or type(exc).__name__),
        ) from exc

    try:
        data = resp.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        log.warning(
            "baidu_verify_invalid_json", shorturl=shorturl, status=resp.status_code
        )
        raise CheckFailure(
            FailureKind.MALFORMED_VERIFICATION_RESPONSE,
            render(
                "verify_malformed", locale, detail=render("verify_not_json", locale)
            ),
        )

    errno = _numeric_errno(data)
    if errno != 0:
        errmsg = _error_message(data) or render("unknown_error", locale)
        log.info("baidu_verify_failed", shorturl=shorturl, errno=errno)
        raise CheckFailure(
            FailureKind.VERIFICATION_FAILED,
            render(
                "verify_failed",
                locale,
                errno=errno if errno is not None else data.get("errno"),
                errmsg=errmsg,
            ),
            provider_code=errno,
        )

    randsk = data.get("randsk")
    if not isinstance(randsk, str) or not randsk:
        log.warning("baidu_verify_missing_randsk", shorturl=shorturl)
        raise CheckFailure(
            FailureKind.MALFORMED_VERIFICATION_RESPONSE,
            render("verify_missing_token", locale),
            provider_code=errno,
        )

    log.debug("baidu_verify_succeeded", shorturl=shorturl)
    return randsk


class ShareListResponse(BaseModel):
    """Strict shape of a ``/share/list`` answer."""

    model_config = ConfigDict(strict=True, extra="allow")

    # An absent errno decodes as 0 (success).
    errno: int = 0
    errmsg: str = Field(
        default="",
        validation_alias=AliasChoices("errmsg", "err_msg"),
    )


def parse_share_list(body: bytes | str) -> ProviderResponse:
    """Decode a listing body: strict model first, loose key lookup second.

    Raises:
        ValueError: the body is not a JSON object, or its ``errno`` is
            present but not a finite number.
    """
    try:
        parsed = ShareListResponse.model_validate_json(body)
    except ValidationError as strict_error:
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise ValueError(str(exc)) from strict_error
        if not isinstance(data, dict):
            raise ValueError("body is not a JSON object") from strict_error
        errno = _numeric_errno(data) if "errno" in data else 0
        if errno is None:
            raise ValueError("errno is not a finite number") from strict_error
        extra = {
            k: v for k, v in data.items() if k not in ("errno", "errmsg", "err_msg")
        }
        return ProviderResponse(code=errno, message=_error_message(data), extra=extra)

    return ProviderResponse(
        code=parsed.errno,
        message=parsed.errmsg,
        extra=dict(parsed.model_extra or {}),
    )


async def fetch_share_list(
    http: httpx.AsyncClient,
    shorturl: str,
    referer: str,
    bdclnd: str = "",
    locale: str = DEFAULT_LOCALE,
) -> ProviderResponse:
    """Issue the listing probe for *shorturl*.

    Raises:
        CheckFailure: ``NETWORK_FAILURE`` or ``UNPARSABLE_RESPONSE``.
    """
    params = [*_LIST_PARAMS, ("shorturl", shorturl), *_LIST_PARAMS_TAIL]
    headers = {"Referer": referer}
    if bdclnd:
        headers["Cookie"] = f"BDCLND={bdclnd}"

    try:
        resp = await http.get(_LIST_URL, params=params, headers=headers)
    except httpx.HTTPError as exc:
        log.warning("baidu_list_request_failed", shorturl=shorturl, error=str(exc))
        raise CheckFailure(
            FailureKind.NETWORK_FAILURE,
            render("network_failure", locale, error=str(exc) or type(exc).__name__),
        ) from exc

    try:
        return parse_share_list(resp.content)
    except ValueError as exc:
        log.warning(
            "baidu_list_unparsable",
            shorturl=shorturl,
            status=resp.status_code,
            body=resp.text[:200],
        )
        raise CheckFailure(
            FailureKind.UNPARSABLE_RESPONSE,
            render("unparsable_response", locale, detail=str(exc)),
        ) from exc


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def failure_reason(errno: int, errmsg: str = "", locale: str = DEFAULT_LOCALE) -> str:
    """Human-readable reason for a non-zero errno; always names the code."""
    message_id = _ERRNO_MESSAGES.get(errno)
    if message_id is not None:
        return render(message_id, locale, errno=errno)
    if errmsg:
        return render("code_unknown_with_message", locale, errno=errno, errmsg=errmsg)
    return render("code_unknown", locale, errno=errno)


def classify_response(
    response: ProviderResponse, locale: str = DEFAULT_LOCALE
) -> CheckResult:
    """Map a listing response onto the check result taxonomy."""
    if response.ok:
        return CheckResult.ok()
    return CheckResult.failed(
        FailureKind.PROVIDER_REJECTED,
        failure_reason(response.code, response.message, locale),
        is_rate_limited=response.code == RATE_LIMITED_ERRNO,
        provider_code=response.code,
    )


# ---------------------------------------------------------------------------
# Checker
# ---------------------------------------------------------------------------


class BaiduChecker(BaseChecker[ShareTarget]):
    """Checks Baidu Netdisk share links via the verify + list web API."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(Platform.BAIDU, **kwargs)

    def matches(self, text: str) -> bool:
        return _SHARE_URL_RE.search(text) is not None

    def prepare(self, link: str) -> ShareTarget:
        url = normalize_share_url(link, self._locale)
        full_id = extract_share_id(url)
        if not full_id:
            raise CheckFailure(
                FailureKind.UNRECOGNIZED_FORMAT, self.msg("unrecognized_format")
            )
        return ShareTarget(
            url=url,
            identifier=ShareIdentifier(full_id=full_id, short_id=short_id(full_id)),
            password=extract_password(url),
        )

    async def probe(self, target: ShareTarget) -> CheckResult:
        shorturl = target.identifier.short_id

        bdclnd = ""
        if target.password:
            bdclnd = await verify_pass_code(
                self._http, target.url, shorturl, target.password, self._locale
            )

        response = await fetch_share_list(
            self._http, shorturl, target.url, bdclnd, self._locale
        )
        result = classify_response(response, self._locale)

        if result.is_rate_limited:
            log.warning("baidu_rate_limited", shorturl=shorturl, errno=response.code)
        elif not result.valid:
            log.info("baidu_share_invalid", shorturl=shorturl, errno=response.code)
        else:
            log.debug("baidu_share_valid", shorturl=shorturl)
        return result
