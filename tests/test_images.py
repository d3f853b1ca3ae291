"""
Tests для проверки изображений.
"""

import pytest

from siteaudit.checkers.images import ImageChecker, analyze_images, display_filename, format_images
from siteaudit.core.models import CheckStatus

from conftest import make_context

GALLERY = """
<img src="/a.png" alt="A" width="10" height="10" loading="lazy">
<img src="/b.png" alt="" width="10" height="10">
<img src="/c.png?v=2">
<img alt="no source">
"""


class TestAnalyzeImages:

    def test_counts(self):
        analysis = analyze_images(GALLERY)
        assert analysis.total == 4
        assert analysis.valid_alt == ("/a.png",)
        assert analysis.empty_alt == ("/b.png",)
        assert analysis.missing_alt == ("/c.png?v=2",)
        assert analysis.missing_dimensions == ("/c.png?v=2",)
        assert analysis.lazy_loaded == 1
        assert analysis.lazy_percent == 25

    def test_no_images(self):
        analysis = analyze_images("<p>text</p>")
        assert analysis.total == 0
        assert analysis.lazy_percent == 0

    @pytest.mark.parametrize("src,expected", [
        ("data:image/png;base64,AAAA", "Base64 Image Data"),
        ("https://cdn.test/img/photo.jpg?w=200", "photo.jpg"),
        ("https://cdn.test/img/", "https://cdn.test/img/"[:30] + "..."),
    ])
    def test_display_filename(self, src, expected):
        assert display_filename(src) == expected

    def test_format_lists_missing_files(self):
        html = "".join(f'<img src="/i{i}.png">' for i in range(7))
        lines = format_images(analyze_images(html))
        assert "❌ SEO: 7 image(s) missing ALT text" in lines
        assert "   • ...and 2 others" in lines


class TestImageChecker:

    @pytest.mark.asyncio
    async def test_missing_alt_is_error(self, site):
        site.add("https://example.com", text=GALLERY)
        result = await ImageChecker(make_context(site)).run()
        assert result.status is CheckStatus.ERROR

    @pytest.mark.asyncio
    async def test_missing_dimensions_is_warning(self, site):
        site.add("https://example.com", text='<img src="/a.png" alt="A">')
        result = await ImageChecker(make_context(site)).run()
        assert result.status is CheckStatus.WARNING

    @pytest.mark.asyncio
    async def test_clean_page_is_success(self, site):
        site.add("https://example.com", text='<img src="/a.png" alt="A" width="1" height="1">')
        result = await ImageChecker(make_context(site)).run()
        assert result.status is CheckStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_fetch_failure(self, site):
        result = await ImageChecker(make_context(site)).run()
        assert result.status is CheckStatus.ERROR
        assert result.details[0].startswith("❌ Image check failed: ")
