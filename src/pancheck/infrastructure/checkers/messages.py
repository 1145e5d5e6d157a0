"""Localized failure-reason catalogs.

Message ids are stable; rendered text is not. Every provider-code message
carries the raw code so reasons stay diagnosable in any locale.
"""

from __future__ import annotations

from typing import Literal

Locale = Literal["en", "zh"]

DEFAULT_LOCALE: Locale = "en"

_CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        "url_normalize_failed": "URL normalization failed: {error}",
        "url_not_found": "no supported share URL found",
        "url_parse_failed": "cannot parse URL: {error}",
        "unrecognized_format": "unrecognized share link format",
        "verify_failed": "extraction code verification failed (errno: {errno}, errmsg: {errmsg})",
        "verify_malformed": "malformed verification response: {detail}",
        "verify_missing_token": "verification succeeded but response carries no randsk",
        "verify_not_json": "body is not a JSON object",
        "unknown_error": "unknown error",
        "network_failure": "request failed: {error}",
        "unparsable_response": "cannot parse share list response: {detail}",
        "timeout": "check timed out after {seconds:g}s",
        "code_missing_password": "missing extraction code (errno: {errno})",
        "code_wrong_password": "wrong extraction code (errno: {errno})",
        "code_rate_limited": "request rate limited by provider (errno: {errno})",
        "code_expired": "share expired (errno: {errno})",
        "code_deleted": "share deleted or unavailable (errno: {errno})",
        "code_cancelled": "share cancelled by owner (errno: {errno})",
        "code_not_found": "share link does not exist (errno: {errno})",
        "code_blocked": "share blocked by provider (errno: {errno})",
        "code_unknown": "share invalid (errno: {errno})",
        "code_unknown_with_message": "share invalid (errno: {errno}, errmsg: {errmsg})",
    },
    "zh": {
        "url_normalize_failed": "URL规范化失败: {error}",
        "url_not_found": "未找到有效的网盘分享URL",
        "url_parse_failed": "解析URL失败: {error}",
        "unrecognized_format": "无效的分享链接格式",
        "verify_failed": "验证提取码失败 (errno: {errno}, errmsg: {errmsg})",
        "verify_malformed": "验证响应格式错误: {detail}",
        "verify_missing_token": "验证响应格式错误，没有randsk字段",
        "verify_not_json": "响应不是JSON对象",
        "unknown_error": "未知错误",
        "network_failure": "请求失败: {error}",
        "unparsable_response": "解析JSON响应失败: {detail}",
        "timeout": "检测超时 ({seconds:g}s)",
        "code_missing_password": "缺少提取码 (errno: {errno})",
        "code_wrong_password": "提取码错误 (errno: {errno})",
        "code_rate_limited": "请求接口受限 (errno: {errno})",
        "code_expired": "分享文件已过期 (errno: {errno})",
        "code_deleted": "分享已删除或不可用 (errno: {errno})",
        "code_cancelled": "分享已被取消 (errno: {errno})",
        "code_not_found": "分享链接不存在 (errno: {errno})",
        "code_blocked": "分享已被屏蔽 (errno: {errno})",
        "code_unknown": "分享链接无效 (errno: {errno})",
        "code_unknown_with_message": "分享链接无效 (errno: {errno}, err_msg: {errmsg})",
    },
}


def render(message_id: str, locale: str = DEFAULT_LOCALE, **params: object) -> str:
    """Render *message_id* in *locale*, falling back to the default locale."""
    catalog = _CATALOGS.get(locale, _CATALOGS[DEFAULT_LOCALE])
    template = catalog.get(message_id) or _CATALOGS[DEFAULT_LOCALE][message_id]
    return template.format(**params)


def supported_locales() -> list[str]:
    return sorted(_CATALOGS)
