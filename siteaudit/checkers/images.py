"""
Image accessibility and layout-stability checks.
"""

from typing import List

from bs4 import BeautifulSoup

from siteaudit.core.analysis import ImageAnalysis
from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.errors import FetchError
from siteaudit.core.models import CheckId, CheckResult, CheckStatus

MAX_LISTED_FILES = 5
MAX_DIMENSION_EXAMPLES = 3


def analyze_images(html: str) -> ImageAnalysis:
    """<img> без src пропускаются; alt="" считается декоративным, не отсутствующим."""
    soup = BeautifulSoup(html, "html.parser")
    images = soup.find_all("img")

    missing_alt: List[str] = []
    empty_alt: List[str] = []
    valid_alt: List[str] = []
    missing_dimensions: List[str] = []
    lazy = 0

    for img in images:
        src = img.get("src")
        if not src:
            continue

        alt = img.get("alt")
        if alt is None:
            missing_alt.append(src)
        elif not alt.strip():
            empty_alt.append(src)
        else:
            valid_alt.append(src)

        if not img.get("width") or not img.get("height"):
            missing_dimensions.append(src)

        if img.get("loading") == "lazy":
            lazy += 1

    return ImageAnalysis(
        total=len(images),
        missing_alt=tuple(missing_alt),
        empty_alt=tuple(empty_alt),
        valid_alt=tuple(valid_alt),
        missing_dimensions=tuple(missing_dimensions),
        lazy_loaded=lazy,
    )


def display_filename(src: str) -> str:
    """Читаемое имя файла из src."""
    if src.startswith("data:"):
        return "Base64 Image Data"
    filename = src.split("?")[0].split("/")[-1]
    if not filename:
        return src[:30] + "..."
    return filename[:35] + "..." if len(filename) > 40 else filename


def format_images(analysis: ImageAnalysis) -> List[str]:
    report = [f"🖼️ Total Images Scanned: {analysis.total}"]

    if not analysis.missing_alt:
        report.append("✅ SEO: All images have alt attributes")
    else:
        report.append(f"❌ SEO: {len(analysis.missing_alt)} image(s) missing ALT text")
        report.append("")
        report.append("🚫 Missing ALT (Specific Files):")
        for src in analysis.missing_alt[:MAX_LISTED_FILES]:
            report.append(f"   • {display_filename(src)}")
        if len(analysis.missing_alt) > MAX_LISTED_FILES:
            report.append(f"   • ...and {len(analysis.missing_alt) - MAX_LISTED_FILES} others")

    if analysis.empty_alt:
        report.append(f"ℹ️ Decorative images (empty alt): {len(analysis.empty_alt)}")

    if not analysis.missing_dimensions:
        report.append("✅ Performance: All images have width/height")
    else:
        report.append(f"⚠️ Performance: {len(analysis.missing_dimensions)} images missing dimensions")
        examples = [display_filename(s) for s in analysis.missing_dimensions[:MAX_DIMENSION_EXAMPLES]]
        report.append(f"   Examples: {', '.join(examples)}...")

    if analysis.total:
        report.append(
            f"⚡ Lazy Loading: {analysis.lazy_loaded}/{analysis.total} images ({analysis.lazy_percent}%)"
        )

    return report


class ImageChecker(BaseChecker):
    """Alt-тексты, размеры и lazy loading изображений."""

    check_id = CheckId.IMAGES
    name = "images"

    async def _check(self) -> CheckResult:
        try:
            page = await self.context.fetch_page()
        except FetchError as e:
            return self.result(
                CheckStatus.ERROR,
                [f"❌ Image check failed: {e.message}"],
                error=e.message,
            )

        analysis = analyze_images(page.text)
        if analysis.missing_alt:
            status = CheckStatus.ERROR
        elif analysis.missing_dimensions:
            status = CheckStatus.WARNING
        else:
            status = CheckStatus.SUCCESS
        return self.result(status, format_images(analysis), analysis=analysis)
