"""Tests for text cleanup and profile URL helpers."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from talenttrace.utils import (
    normalize_profile_url,
    sanitize_text,
    username_from_url,
    validate_profile_url,
)


class TestSanitizeText:
    """Test suite for sanitize_text."""

    def test_collapses_whitespace_and_quotes(self) -> None:
        assert sanitize_text("  “Staff”\n\n Engineer  ") == '"Staff" Engineer'

    def test_normalizes_ellipsis(self) -> None:
        assert sanitize_text("see more…") == "see more..."

    @given(st.text())
    def test_is_idempotent(self, text: str) -> None:
        once = sanitize_text(text)

        assert sanitize_text(once) == once
        assert once == once.strip()


class TestProfileUrls:
    """Test suite for URL helpers."""

    @pytest.mark.parametrize(
        "raw",
        [
            "https://www.linkedin.com/in/jane-doe",
            "https://www.linkedin.com/in/jane-doe/",
            "linkedin.com/in/jane-doe",
            "http://linkedin.com/in/jane-doe/?trk=public#about",
        ],
    )
    def test_normalize(self, raw: str) -> None:
        assert normalize_profile_url(raw) == "https://www.linkedin.com/in/jane-doe"

    def test_validate_accepts_profile(self) -> None:
        validate_profile_url("https://www.linkedin.com/in/jane-doe")

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "https://example.com/in/jane-doe",
            "https://www.linkedin.com/company/acme",
            "https://www.linkedin.com/in/",
        ],
    )
    def test_validate_rejects(self, url: str) -> None:
        with pytest.raises(ValueError):
            validate_profile_url(url)

    def test_username(self) -> None:
        assert username_from_url("https://www.linkedin.com/in/jane-doe") == "jane-doe"

    def test_username_rejects_non_profile(self) -> None:
        with pytest.raises(ValueError):
            username_from_url("https://www.linkedin.com/feed/")
