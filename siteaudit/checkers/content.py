"""
Content and style checks: footer copyright, web fonts, social media links.
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import unquote_plus, urlparse

from bs4 import BeautifulSoup

from siteaudit.core.analysis import (
    ContentAnalysis,
    CopyrightCheck,
    SocialLink,
    SocialLinksCheck,
    WebFontsCheck,
)
from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.errors import FetchError
from siteaudit.core.models import CheckId, CheckResult, CheckStatus

FOOTER_SELECTOR = 'footer, .footer, #footer, [class*="footer"]'

_TERMINATOR = r"(?:\s*\.|\s*$|\s*<|\s*\||\s*\n)"

COPYRIGHT_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        # © 2025 Company
        r"©\s*(\d{4})\s*([^.\n<]+?)" + _TERMINATOR,
        r"copyright\s*©?\s*(\d{4})\s*([^.\n<]+?)" + _TERMINATOR,
        r"\(c\)\s*(\d{4})\s*([^.\n<]+?)" + _TERMINATOR,
        # © Company 2025
        r"©\s*([^.\n<]+?)(?:[.,\s]+)(\d{4})",
        r"copyright\s*©?\s*([^.\n<]+?)(?:[.,\s]+)(\d{4})",
        r"\(c\)\s*([^.\n<]+?)(?:[.,\s]+)(\d{4})",
    )
)

_YEAR = re.compile(r"^\d{4}$")
_RESERVED_SUFFIX = re.compile(r"\s*(all rights reserved|reserved|rights reserved).*$", re.IGNORECASE)
_FONT_FACE = re.compile(r"@font-face\s*{[^}]*font-family\s*:\s*['\"]?([^'\";]+)['\"]?", re.IGNORECASE)
_GOOGLE_FAMILY = re.compile(r"family=([^&:]+)")

SOCIAL_DOMAINS = (
    "facebook.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "tiktok.com",
    "pinterest.com",
    "snapchat.com",
    "whatsapp.com",
    "telegram.org",
    "discord.com",
    "reddit.com",
    "tumblr.com",
    "flickr.com",
    "vimeo.com",
    "twitch.tv",
)

FETCH_FAILED_ISSUE = "Unable to check - page fetch failed"


def _split_match(match: "re.Match") -> Optional[Tuple[int, str]]:
    """Какая группа является годом, определяется по форме, а не по позиции."""
    first, second = match.group(1), match.group(2)
    if _YEAR.match(first):
        return int(first), second
    if _YEAR.match(second):
        return int(second), first
    return None


def clean_company_name(name: str) -> str:
    cleaned = _RESERVED_SUFFIX.sub("", name.strip()).strip()
    return re.sub(r"[.,]$", "", cleaned)


def _search_copyright(text: str) -> Optional[Tuple[re.Match, int, str]]:
    for pattern in COPYRIGHT_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        split = _split_match(match)
        if split:
            return match, split[0], split[1]
    return None


def check_copyright(soup: BeautifulSoup, html: str, current_year: int) -> CopyrightCheck:
    """Копирайт: сначала footer-подобные элементы, затем вся страница."""
    found = None
    location = "Not found"

    for footer in soup.select(FOOTER_SELECTOR):
        found = _search_copyright(footer.get_text())
        if found:
            location = "Footer element"
            break

    if not found:
        body_text = soup.body.get_text() if soup.body else html
        found = _search_copyright(body_text)
        if found:
            location = "Page content"

    if not found:
        return CopyrightCheck(issues=("No copyright notice found in footer or page content",))

    match, year, company = found
    company = clean_company_name(company)
    issues: List[str] = []

    if year < current_year:
        issues.append(f"Copyright year ({year}) is outdated - current year ({current_year}) required")
    elif year > current_year:
        issues.append(f"Copyright year ({year}) is in the future - current year ({current_year}) expected")

    if len(company) < 2:
        issues.append("Company name appears to be missing or too short")

    return CopyrightCheck(
        found=True,
        text=match.group(0).strip(),
        year=year,
        company_name=company,
        location=location,
        issues=tuple(issues),
    )


def check_web_fonts(soup: BeautifulSoup, html: str) -> WebFontsCheck:
    """Google Fonts, Adobe Typekit, @font-face, затем просто font-family."""
    fonts: List[str] = []
    sources: List[str] = []

    google_links = soup.select('link[href*="fonts.googleapis.com"], link[href*="fonts.gstatic.com"]')
    if google_links:
        sources.append("Google Fonts")
        for link in google_links:
            href = link.get("href") or ""
            for family in _GOOGLE_FAMILY.findall(href):
                fonts.append(unquote_plus(family))

    if soup.select('link[href*="use.typekit.net"], script[src*="use.typekit.net"]'):
        sources.append("Adobe Fonts (Typekit)")

    custom_fonts = []
    for style in soup.find_all("style"):
        custom_fonts.extend(m.strip() for m in _FONT_FACE.findall(style.get_text()))
    if custom_fonts:
        fonts.extend(custom_fonts)
        sources.append("Custom @font-face")

    if not sources and ("@font-face" in html or "font-family" in html):
        sources.append("CSS font-family declarations")

    found = bool(sources or fonts)
    return WebFontsCheck(
        found=found,
        fonts=tuple(fonts),
        sources=tuple(sources),
        issues=() if found else ("No web fonts detected",),
    )


def _social_platform(href: str) -> Optional[str]:
    """Только абсолютные и protocol-relative ссылки."""
    if href.startswith("//"):
        href = "https:" + href
    elif not href.startswith("http"):
        return None
    try:
        hostname = (urlparse(href).hostname or "").lower()
    except ValueError:
        return None
    for domain in SOCIAL_DOMAINS:
        if hostname == domain or hostname.endswith("." + domain):
            return domain
    return None


def _platform_name(domain: str) -> str:
    return domain.replace(".com", "").replace(".org", "").replace(".tv", "")


def check_social_links(soup: BeautifulSoup) -> SocialLinksCheck:
    links: List[SocialLink] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        domain = _social_platform(href)
        if not domain:
            continue
        rel = anchor.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        rel = [r.lower() for r in rel]
        links.append(
            SocialLink(
                platform=_platform_name(domain),
                url=href,
                text=anchor.get_text().strip(),
                opens_in_new_tab=anchor.get("target") == "_blank",
                has_noopener="noopener" in rel,
                has_noreferrer="noreferrer" in rel,
            )
        )

    if not links:
        return SocialLinksCheck(issues=("No social media links found",))

    issues: List[str] = []
    without_target = sum(1 for link in links if not link.opens_in_new_tab)
    without_rel = sum(1 for link in links if not (link.has_noopener or link.has_noreferrer))
    if without_target:
        issues.append(f"{without_target} social link(s) don't open in new tab")
    if without_rel:
        issues.append(f'{without_rel} social link(s) missing rel="noopener" security attribute')

    return SocialLinksCheck(found=True, links=tuple(links), issues=tuple(issues))


def check_content(html: str, current_year: int) -> ContentAnalysis:
    soup = BeautifulSoup(html, "html.parser")
    return ContentAnalysis(
        copyright=check_copyright(soup, html, current_year),
        web_fonts=check_web_fonts(soup, html),
        social_links=check_social_links(soup),
    )


def content_status(analysis: ContentAnalysis) -> Tuple[CheckStatus, str]:
    """
    Итоговый статус и заголовок.

    Не найдено → failed; найдено с замечаниями (копирайт, шрифты) → warned.
    Замечания по социальным ссылкам только рекомендательные.
    """
    passed = warned = failed = 0
    for sub in (analysis.copyright, analysis.web_fonts):
        if not sub.found:
            failed += 1
        elif sub.issues:
            warned += 1
        else:
            passed += 1
    if analysis.social_links.found:
        passed += 1
    else:
        failed += 1

    if failed:
        return (
            CheckStatus.WARNING,
            f"⚠️ Content and style elements: {failed} failed, {warned} warned, {passed} passed",
        )
    if warned:
        return CheckStatus.WARNING, f"⚠️ Content and style elements: {warned} have issues, {passed} passed"
    return CheckStatus.SUCCESS, "✅ Content and style elements analyzed"


def format_content(analysis: ContentAnalysis) -> List[str]:
    details: List[str] = []

    copyright_check = analysis.copyright
    if copyright_check.found:
        icon = "⚠️" if copyright_check.issues else "✅"
        details.append(f'▶️ COPYRIGHT: {icon} "{copyright_check.text}"')
        details.append(f"   • Found in: {copyright_check.location}")
        details.append(f"   • Year: {copyright_check.year}")
        details.append(f"   • Company: {copyright_check.company_name}")
        if copyright_check.issues:
            details.append("   ⚠️ Issues:")
            details.extend(f"     • {issue}" for issue in copyright_check.issues)
    else:
        details.append("▶️ COPYRIGHT: ❌ Missing")
        details.append("   ❌ No copyright notice found")
    details.append("")

    fonts = analysis.web_fonts
    if fonts.found:
        details.append(f"▶️ WEB FONTS: ✅ {', '.join(fonts.sources)}")
        if fonts.fonts:
            more = "..." if len(fonts.fonts) > 5 else ""
            details.append(f"   • Font families: {', '.join(fonts.fonts[:5])}{more}")
    else:
        details.append("▶️ WEB FONTS: ❌ Not detected")
        details.append("   ❌ No custom web fonts found")
    details.append("")

    social = analysis.social_links
    if social.found:
        details.append(f"▶️ SOCIAL MEDIA: ✅ {len(social.links)} link(s) found")
        details.append(f"   • Platforms: {', '.join(social.platforms)}")
        secure = sum(1 for link in social.links if link.secure)
        details.append(f"   • Secure external links: {secure}/{len(social.links)}")
        if social.issues:
            details.append("   💡 Security Recommendations:")
            details.extend(f"     • {issue}" for issue in social.issues)
            details.append("   📝 Note: These are security best practices, not critical failures")
    else:
        details.append("▶️ SOCIAL MEDIA: ❌ No links found")
        details.append("   ❌ No social media links detected")

    return details


def fetch_failed_analysis() -> ContentAnalysis:
    issues = (FETCH_FAILED_ISSUE,)
    return ContentAnalysis(
        copyright=CopyrightCheck(issues=issues),
        web_fonts=WebFontsCheck(issues=issues),
        social_links=SocialLinksCheck(issues=issues),
    )


class ContentChecker(BaseChecker):
    """Копирайт, веб-шрифты, ссылки на соцсети."""

    check_id = CheckId.CONTENT
    name = "content"

    async def _check(self) -> CheckResult:
        try:
            page = await self.context.fetch_page()
        except FetchError as e:
            return self.result(
                CheckStatus.ERROR,
                self._failure_details(e.message),
                analysis=fetch_failed_analysis(),
                error=e.message,
            )

        analysis = check_content(page.text, self.context.now().year)
        status, headline = content_status(analysis)
        details = [headline, "", "📋 CONTENT AND STYLE CHECKS:"]
        details.extend(format_content(analysis))
        return self.result(status, details, analysis=analysis)

    def _failure_details(self, message: str) -> Tuple[str, ...]:
        return (
            "❌ Failed to analyze content and style elements",
            f"Error: {message}",
            "",
            "📋 ATTEMPTED CHECKS:",
            "▶️ COPYRIGHT: ❌ Unable to check (page fetch failed)",
            "▶️ WEB FONTS: ❌ Unable to check (page fetch failed)",
            "▶️ SOCIAL MEDIA: ❌ Unable to check (page fetch failed)",
        )
