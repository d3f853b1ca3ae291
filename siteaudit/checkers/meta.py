"""
Meta tags & SEO extraction.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

from siteaudit.core.analysis import (
    LengthRating,
    MetaAnalysis,
    RobotsMeta,
    SocialTags,
    StructuredData,
    TextMeta,
)
from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.errors import FetchError
from siteaudit.core.models import CheckId, CheckResult, CheckStatus

logger = logging.getLogger(__name__)

# (min, max) оптимальной длины в символах
TITLE_RANGE = (30, 60)
DESCRIPTION_RANGE = (120, 160)

OPEN_GRAPH_FIELDS = ("title", "description", "image", "url", "type", "site_name")
TWITTER_FIELDS = ("card", "title", "description", "image", "site", "creator")


def rate_length(length: int, bounds: Tuple[int, int]) -> LengthRating:
    low, high = bounds
    if length < low:
        return LengthRating.TOO_SHORT
    if length > high:
        return LengthRating.TOO_LONG
    return LengthRating.OPTIMAL


def _text_meta(content: Optional[str], bounds: Tuple[int, int]) -> TextMeta:
    if content is None:
        return TextMeta()
    return TextMeta(content=content, present=True, rating=rate_length(len(content), bounds))


def _collect_types(data: Any, types: List[str]) -> None:
    """@type из объекта, списка объектов и @graph."""
    if isinstance(data, list):
        for item in data:
            _collect_types(item, types)
        return
    if not isinstance(data, dict):
        return

    declared = data.get("@type")
    if isinstance(declared, str):
        types.append(declared)
    elif isinstance(declared, list):
        types.extend(t for t in declared if isinstance(t, str))

    graph = data.get("@graph")
    if isinstance(graph, list):
        _collect_types(graph, types)


def extract_structured_data(blocks: Iterable[str]) -> StructuredData:
    """Каждый блок JSON-LD разбирается отдельно; невалидные пропускаются."""
    count = 0
    invalid = 0
    types: List[str] = []
    for raw in blocks:
        count += 1
        try:
            data = json.loads(raw)
        except ValueError:
            invalid += 1
            logger.debug("Skipping invalid JSON-LD block")
            continue
        _collect_types(data, types)

    return StructuredData(blocks=count, types=tuple(dict.fromkeys(types)), invalid_blocks=invalid)


def extract_meta(html: str) -> MetaAnalysis:
    """Чистая функция: HTML → SEO-факты."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else None

    description: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    viewport: Optional[str] = None
    charset: Optional[str] = None
    robots = RobotsMeta()
    og_typed: Dict[str, str] = {}
    og_tags: List[Tuple[str, str]] = []
    tw_typed: Dict[str, str] = {}
    tw_tags: List[Tuple[str, str]] = []

    for meta in soup.find_all("meta"):
        name = (meta.get("name") or "").lower()
        prop = (meta.get("property") or "").lower()
        content = meta.get("content") or ""

        if name == "description":
            description = content
        elif name == "keywords":
            keywords = tuple(k.strip() for k in content.split(",") if k.strip())
        elif name == "viewport":
            viewport = content
        elif name == "robots":
            lowered = content.lower()
            robots = RobotsMeta(
                content=content,
                present=True,
                noindex="noindex" in lowered,
                nofollow="nofollow" in lowered,
            )

        if meta.has_attr("charset"):
            charset = meta.get("charset")

        if prop.startswith("og:"):
            key = prop[3:]
            if key in OPEN_GRAPH_FIELDS:
                og_typed[key] = content
            og_tags.append((key, content))

        if name.startswith("twitter:"):
            key = name[8:]
            if key in TWITTER_FIELDS:
                tw_typed[key] = content
            tw_tags.append((key, content))

    canonical_tag = soup.select_one('link[rel="canonical"]')
    canonical = canonical_tag.get("href", "") if canonical_tag else None

    hreflang = tuple(
        (link.get("hreflang"), link.get("href") or "")
        for link in soup.select('link[rel="alternate"][hreflang]')
    )

    structured = extract_structured_data(
        script.string or script.get_text()
        for script in soup.find_all("script", attrs={"type": "application/ld+json"})
    )

    return MetaAnalysis(
        title=_text_meta(title, TITLE_RANGE),
        description=_text_meta(description, DESCRIPTION_RANGE),
        keywords=keywords,
        viewport=viewport,
        charset=charset,
        canonical=canonical,
        robots=robots,
        open_graph=SocialTags(typed=og_typed, tags=tuple(og_tags)),
        twitter_card=SocialTags(typed=tw_typed, tags=tuple(tw_tags)),
        hreflang=hreflang,
        structured_data=structured,
    )


_RATING_TEXT = {
    LengthRating.TOO_SHORT: "too short",
    LengthRating.OPTIMAL: "optimal",
    LengthRating.TOO_LONG: "too long",
}


def _length_line(label: str, meta: TextMeta) -> str:
    if not meta.present:
        return f"❌ {label}: Missing"
    icon = "✅" if meta.rating is LengthRating.OPTIMAL else "⚠️"
    return f"{icon} {label}: {meta.length} chars ({_RATING_TEXT[meta.rating]})"


def format_meta(analysis: MetaAnalysis) -> List[str]:
    report = [
        _length_line("Title", analysis.title),
        _length_line("Description", analysis.description),
    ]

    if analysis.keywords:
        report.append(f"ℹ️ Keywords: {len(analysis.keywords)}")

    if analysis.viewport is None:
        report.append("❌ Viewport: Missing")
    elif analysis.viewport_responsive:
        report.append("✅ Viewport: Mobile-friendly")
    else:
        report.append("⚠️ Viewport: Not responsive")

    report.append(f"✅ Charset: {analysis.charset}" if analysis.charset else "⚠️ Charset: Not specified")
    report.append("✅ Canonical URL: Present" if analysis.canonical is not None else "⚠️ Canonical URL: Missing")

    og_count = len(analysis.open_graph.tags)
    report.append(f"✅ Open Graph: {og_count} tags found" if og_count else "⚠️ Open Graph: No tags found")
    tw_count = len(analysis.twitter_card.tags)
    report.append(f"✅ Twitter Card: {tw_count} tags found" if tw_count else "⚠️ Twitter Card: No tags found")

    structured = analysis.structured_data
    if structured.found:
        types = ", ".join(structured.types) or "no @type declared"
        report.append(f"✅ Structured Data: {types}")
        if structured.invalid_blocks:
            report.append(f"   ⚠️ {structured.invalid_blocks} invalid JSON-LD block(s) skipped")
    else:
        report.append("⚠️ Structured Data: None found")

    if analysis.hreflang:
        report.append(f"✅ Hreflang: {len(analysis.hreflang)} alternatives")

    if analysis.robots.present:
        if analysis.robots.restrictive:
            report.append(f"⚠️ Robots: {analysis.robots.content} (restrictive)")
        else:
            report.append(f"✅ Robots: {analysis.robots.content}")

    report.append("")
    report.append("📝 META TAG CONTENT:")
    report.append(
        f'▶️ TITLE: "{analysis.title.content}"' if analysis.title.present else "▶️ TITLE: Missing"
    )
    report.append(
        f'▶️ DESCRIPTION: "{analysis.description.content}"'
        if analysis.description.present
        else "▶️ DESCRIPTION: Missing"
    )
    report.append(
        f"▶️ CANONICAL URL: {analysis.canonical}"
        if analysis.canonical is not None
        else "▶️ CANONICAL URL: Missing"
    )
    return report


class MetaChecker(BaseChecker):
    """Мета-теги и SEO."""

    check_id = CheckId.META
    name = "meta"

    async def _check(self) -> CheckResult:
        try:
            page = await self.context.fetch_page()
        except FetchError as e:
            return self.result(
                CheckStatus.ERROR,
                ["❌ Meta tags check failed", f"Error: {e.message}"],
                error=e.message,
            )

        analysis = extract_meta(page.text)
        if not analysis.title.present or not analysis.description.present or analysis.robots.noindex:
            status = CheckStatus.WARNING
        else:
            status = CheckStatus.SUCCESS
        return self.result(status, format_meta(analysis), analysis=analysis)
