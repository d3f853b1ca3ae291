"""
robots.txt fetcher and directive parser.
"""

import re
from typing import List, Optional

from siteaudit.core.analysis import RobotsAnalysis, RobotsRule
from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.http import TRANSPORT_ERRORS, describe_error
from siteaudit.core.models import CheckId, CheckResult, CheckStatus

MAX_CONTENT_LINES = 50

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def _parse_crawl_delay(value: str) -> Optional[int]:
    """Целое число в начале значения; иначе None."""
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(0))


def parse_robots(content: str) -> RobotsAnalysis:
    """
    Разобрать robots.txt построчно.

    allow/disallow до первого user-agent игнорируются; sitemap и
    crawl-delay глобальные и не привязаны к агенту.
    """
    lines = content.split("\n")
    user_agents: List[str] = []
    disallowed: List[RobotsRule] = []
    allowed: List[RobotsRule] = []
    sitemaps: List[str] = []
    crawl_delay: Optional[int] = None
    has_wildcard = False
    current_agent: Optional[str] = None

    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if ":" not in stripped:
            continue

        directive, value = stripped.split(":", 1)
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            current_agent = value
            if value not in user_agents:
                user_agents.append(value)
            if value == "*":
                has_wildcard = True
        elif directive == "disallow":
            if current_agent:
                disallowed.append(RobotsRule(user_agent=current_agent, path=value))
        elif directive == "allow":
            if current_agent:
                allowed.append(RobotsRule(user_agent=current_agent, path=value))
        elif directive == "sitemap":
            if value not in sitemaps:
                sitemaps.append(value)
        elif directive == "crawl-delay":
            crawl_delay = _parse_crawl_delay(value)

    return RobotsAnalysis(
        user_agents=tuple(user_agents),
        disallowed_paths=tuple(disallowed),
        allowed_paths=tuple(allowed),
        sitemaps=tuple(sitemaps),
        crawl_delay=crawl_delay,
        has_wildcard=has_wildcard,
        total_lines=len(lines),
        is_empty=not content.strip(),
        size=len(content.encode("utf-8")),
    )


def format_robots(analysis: RobotsAnalysis, content: str) -> List[str]:
    """Строки отчёта: сводка + содержимое файла."""
    details = ["✅ robots.txt found and accessible"]

    if analysis.is_empty:
        details.append("📄 (This robots.txt file is empty)")
        details.append(f"📏 File size: {analysis.size} bytes")
        return details

    details.append(f"📊 User Agents: {len(analysis.user_agents)}")
    details.append(f"🚫 Disallowed Paths: {len(analysis.disallowed_paths)}")
    details.append(f"✅ Allowed Paths: {len(analysis.allowed_paths)}")
    details.append(f"🗺️ Sitemaps: {len(analysis.sitemaps)}")
    if analysis.crawl_delay is not None:
        details.append(f"⏱️ Crawl Delay: {analysis.crawl_delay}s")
    if analysis.has_wildcard:
        details.append("🌐 Has wildcard (*) user-agent")

    details.append("")
    details.append("📄 File Content:")
    content_lines = content.split("\n")
    details.extend(content_lines[:MAX_CONTENT_LINES])
    if len(content_lines) > MAX_CONTENT_LINES:
        details.append(f"... (truncated, showing first {MAX_CONTENT_LINES} lines)")

    details.append("")
    details.append(f"📏 File size: {analysis.size} bytes")
    if len(content_lines) > MAX_CONTENT_LINES:
        details.append(f"📄 Total lines: {len(content_lines)} (showing first {MAX_CONTENT_LINES})")

    return details


class RobotsChecker(BaseChecker):
    """Загрузка и разбор /robots.txt."""

    check_id = CheckId.ROBOTS
    name = "robots"

    async def _check(self) -> CheckResult:
        url = f"{self.target.https_url}/robots.txt"
        try:
            response = await self.client.get(url, follow_redirects=True)
        except TRANSPORT_ERRORS as e:
            message = describe_error(e)
            return self.result(
                CheckStatus.ERROR,
                ["❌ robots.txt not found or inaccessible", f"Error: {message}"],
                error=message,
            )

        if not response.is_success:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
            return self.result(
                CheckStatus.ERROR,
                ["❌ robots.txt not found or inaccessible", f"Error: {message}"],
                error=message,
            )

        content = response.text
        analysis = parse_robots(content)
        self.logger.debug(
            f"robots.txt: {len(analysis.user_agents)} agents, "
            f"{len(analysis.disallowed_paths)} disallow rules"
        )
        return self.result(CheckStatus.SUCCESS, format_robots(analysis, content), analysis=analysis)
