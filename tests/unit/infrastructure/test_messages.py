"""Tests for localized failure-reason catalogs."""

from __future__ import annotations

import string

import pytest

from pancheck.infrastructure.checkers.messages import (
    _CATALOGS,
    render,
    supported_locales,
)


def _fields(template: str) -> set[str]:
    return {name for _, name, _, _ in string.Formatter().parse(template) if name}


class TestCatalogs:
    def test_supported_locales(self) -> None:
        assert supported_locales() == ["en", "zh"]

    def test_locales_share_message_ids(self) -> None:
        assert set(_CATALOGS["en"]) == set(_CATALOGS["zh"])

    @pytest.mark.parametrize("message_id", sorted(_CATALOGS["en"]))
    def test_locales_share_placeholders(self, message_id: str) -> None:
        assert _fields(_CATALOGS["en"][message_id]) == _fields(
            _CATALOGS["zh"][message_id]
        )

    @pytest.mark.parametrize(
        "message_id", [m for m in sorted(_CATALOGS["en"]) if m.startswith("code_")]
    )
    def test_code_messages_carry_errno(self, message_id: str) -> None:
        assert "errno" in _fields(_CATALOGS["en"][message_id])


class TestRender:
    def test_english(self) -> None:
        assert render("code_expired", errno=-8) == "share expired (errno: -8)"

    def test_chinese(self) -> None:
        assert render("code_rate_limited", "zh", errno=-62) == "请求接口受限 (errno: -62)"

    def test_unknown_locale_falls_back(self) -> None:
        assert render("unknown_error", "de") == "unknown error"

    def test_timeout_formats_seconds(self) -> None:
        assert render("timeout", seconds=30.0) == "check timed out after 30s"

    def test_unknown_message_id_raises(self) -> None:
        with pytest.raises(KeyError):
            render("no_such_message")
