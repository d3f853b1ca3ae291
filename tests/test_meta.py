"""
Tests для извлечения мета-тегов и SEO.
"""

import pytest

from siteaudit.checkers.meta import MetaChecker, extract_meta, format_meta, rate_length
from siteaudit.core.analysis import LengthRating
from siteaudit.core.models import CheckStatus

from conftest import HOME_HTML, make_context

RICH_HEAD = """
<html><head>
  <title>  Short  </title>
  <meta name="keywords" content="widgets, gadgets, , tools">
  <meta name="robots" content="NOINDEX, follow">
  <meta property="og:title" content="Example">
  <meta property="og:locale" content="en_US">
  <meta name="twitter:card" content="summary">
  <link rel="alternate" hreflang="de" href="https://example.com/de/">
  <link rel="alternate" hreflang="fr" href="https://example.com/fr/">
  <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Organization"}</script>
  <script type="application/ld+json">[{"@type": "WebSite"}, {"@graph": [{"@type": "WebPage"}, {"@type": ["Article", "Organization"]}]}]</script>
  <script type="application/ld+json">{not json</script>
</head><body></body></html>
"""


class TestRateLength:

    @pytest.mark.parametrize("length,expected", [
        (29, LengthRating.TOO_SHORT),
        (30, LengthRating.OPTIMAL),
        (60, LengthRating.OPTIMAL),
        (61, LengthRating.TOO_LONG),
    ])
    def test_title_bounds(self, length, expected):
        assert rate_length(length, (30, 60)) is expected


class TestExtractMeta:

    def test_home_page(self):
        meta = extract_meta(HOME_HTML)
        assert meta.title.present
        assert meta.title.rating is LengthRating.OPTIMAL
        assert meta.description.rating is LengthRating.OPTIMAL
        assert meta.viewport_responsive
        assert meta.charset == "utf-8"
        assert meta.canonical == "https://example.com/"
        assert not meta.robots.present

    def test_title_is_trimmed(self):
        meta = extract_meta(RICH_HEAD)
        assert meta.title.content == "Short"
        assert meta.title.rating is LengthRating.TOO_SHORT

    def test_missing_tags(self):
        meta = extract_meta("<html><head></head><body></body></html>")
        assert not meta.title.present
        assert meta.title.rating is LengthRating.MISSING
        assert not meta.description.present
        assert meta.viewport is None
        assert meta.canonical is None

    def test_keywords_and_robots(self):
        meta = extract_meta(RICH_HEAD)
        assert meta.keywords == ("widgets", "gadgets", "tools")
        assert meta.robots.noindex
        assert not meta.robots.nofollow
        assert meta.robots.restrictive

    def test_social_tags(self):
        meta = extract_meta(RICH_HEAD)
        assert meta.open_graph.typed == {"title": "Example"}
        assert meta.open_graph.tags == (("title", "Example"), ("locale", "en_US"))
        assert meta.twitter_card.typed == {"card": "summary"}

    def test_hreflang(self):
        meta = extract_meta(RICH_HEAD)
        assert meta.hreflang == (("de", "https://example.com/de/"), ("fr", "https://example.com/fr/"))

    def test_structured_data(self):
        data = extract_meta(RICH_HEAD).structured_data
        assert data.found
        assert data.blocks == 3
        assert data.invalid_blocks == 1
        assert data.types == ("Organization", "WebSite", "WebPage", "Article")


class TestFormatMeta:

    def test_lines(self):
        lines = format_meta(extract_meta(RICH_HEAD))
        assert "⚠️ Title: 5 chars (too short)" in lines
        assert "❌ Description: Missing" in lines
        assert "❌ Viewport: Missing" in lines
        assert "✅ Open Graph: 2 tags found" in lines
        assert "✅ Hreflang: 2 alternatives" in lines
        assert "   ⚠️ 1 invalid JSON-LD block(s) skipped" in lines
        assert "▶️ DESCRIPTION: Missing" in lines


class TestMetaChecker:

    @pytest.mark.asyncio
    async def test_success(self, site):
        site.add("https://example.com", text=HOME_HTML)
        result = await MetaChecker(make_context(site)).run()
        assert result.status is CheckStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_noindex_is_warning(self, site):
        site.add("https://example.com", text=RICH_HEAD)
        result = await MetaChecker(make_context(site)).run()
        assert result.status is CheckStatus.WARNING

    @pytest.mark.asyncio
    async def test_fetch_failure(self, site):
        site.add("https://example.com", status=503)
        result = await MetaChecker(make_context(site)).run()

        assert result.status is CheckStatus.ERROR
        assert result.details[0] == "❌ Meta tags check failed"
