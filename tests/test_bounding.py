"""Tests for the output bounding policy"""

import pytest

from process_manager_mcp.bounding import bound_json, bound_text, estimate_tokens
from process_manager_mcp.consts import (
    MAX_RESPONSE_CHARS,
    MAX_RESPONSE_TOKENS,
    SIZE_WARNING_RATIO,
)

WARNING_THRESHOLD_CHARS = int(MAX_RESPONSE_TOKENS * SIZE_WARNING_RATIO * 4)


class TestBoundText:
    def test_short_text_unchanged(self):
        assert bound_text("hello") == "hello"

    @pytest.mark.parametrize(
        "length", [MAX_RESPONSE_CHARS + 1, MAX_RESPONSE_CHARS * 3]
    )
    def test_long_text_truncated_within_budget(self, length):
        bounded = bound_text("x" * length)

        assert len(bounded) <= MAX_RESPONSE_CHARS
        assert "truncated" in bounded
        assert f"of {length:,} characters" in bounded

    @pytest.mark.parametrize(
        "length", [MAX_RESPONSE_CHARS, MAX_RESPONSE_CHARS - 10]
    )
    def test_text_near_limit_leaves_room_for_warning(self, length):
        """Text that fits only without its size warning is truncated"""
        bounded = bound_text("x" * length)

        assert len(bounded) <= MAX_RESPONSE_CHARS
        assert "truncated" in bounded
        assert "Warning: large response" in bounded

    def test_text_fitting_with_warning_not_truncated(self):
        text = "x" * (MAX_RESPONSE_CHARS - 200)
        bounded = bound_text(text)

        assert "truncated" not in bounded
        assert bounded.startswith(text)
        assert len(bounded) <= MAX_RESPONSE_CHARS

    def test_size_warning_without_truncation(self):
        text = "x" * (WARNING_THRESHOLD_CHARS + 400)
        bounded = bound_text(text)

        assert "truncated" not in bounded
        assert "Warning: large response" in bounded

    def test_no_warning_below_threshold(self):
        text = "x" * (WARNING_THRESHOLD_CHARS - 400)
        assert bound_text(text) == text

    def test_truncated_text_also_warns(self):
        bounded = bound_text("x" * (MAX_RESPONSE_CHARS * 2))

        assert "truncated" in bounded
        assert "Warning: large response" in bounded
        assert len(bounded) <= MAX_RESPONSE_CHARS

    def test_deterministic(self):
        text = "y" * (MAX_RESPONSE_CHARS + 10)
        assert bound_text(text) == bound_text(text)


class TestBoundJson:
    def test_hard_cut_without_notice(self):
        bounded = bound_json("{" * (MAX_RESPONSE_CHARS + 50))
        assert len(bounded) == MAX_RESPONSE_CHARS
        assert "truncated" not in bounded

    def test_small_json_unchanged(self):
        assert bound_json('{"a": 1}') == '{"a": 1}'


def test_estimate_tokens():
    assert estimate_tokens("abcd" * 10) == 10
