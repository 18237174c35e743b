from __future__ import annotations

import pytest

from pageinfer.prompts import DEFAULT_SYSTEM_PROMPT, GENERAL, WEBSITE_TYPES, detect_website_type


class TestDetectWebsiteType:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://github.com/psf/requests", "github"),
            ("https://stackoverflow.com/questions/1", "stackoverflow"),
            ("https://www.youtube.com/watch?v=1&channel=abc", "video"),
        ],
    )
    def test_url_alone(self, url, expected):
        assert detect_website_type("", url).type == expected

    def test_three_pattern_hits(self):
        content = "Add to cart. Free shipping on every order at this price."
        assert detect_website_type(content, "https://store.example").type == "shopping"

    def test_two_hits_not_enough(self):
        assert detect_website_type("Breaking headline", "https://a.example") is GENERAL

    def test_case_insensitive(self):
        content = "RESEARCH PAPER with METHODOLOGY"
        assert detect_website_type(content, "https://a.example").type == "academic"

    def test_first_match_wins(self):
        # Both linkedin and social_media patterns match; linkedin is listed first.
        content = "profile post share follow job hiring skills"
        assert detect_website_type(content, "https://a.example").type == "linkedin"

    def test_general_prompt(self):
        assert GENERAL.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert detect_website_type("", "") is GENERAL

    def test_every_type_has_prompt(self):
        assert len(WEBSITE_TYPES) == 9
        assert all(w.system_prompt and w.patterns for w in WEBSITE_TYPES)
