"""
URL topology checker: scheme × host-form matrix, redirects and CDN detection.
"""

import asyncio
from typing import Dict, List, Mapping, Optional, Tuple

from siteaudit.core.analysis import (
    TOPOLOGY_ORDER,
    TopologyCell,
    TopologyKey,
    TopologyMatrix,
    WwwRedirection,
)
from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.http import TRANSPORT_ERRORS, describe_error
from siteaudit.core.models import CheckId, CheckResult, CheckStatus
from siteaudit.infrastructure.retry import retry_async

CDN_HEADERS = ("cf-ray", "cf-cache-status", "cf-connecting-ip", "cf-worker")

# Известные диапазоны Cloudflare (ведущие октеты)
CDN_IP_PREFIXES = (
    "173.245.48", "103.21.244", "103.22.200",
    "103.31.4", "141.101.64", "108.162.192",
    "190.93.240", "188.114.96", "197.234.240",
    "198.41.128", "162.158", "104.16",
    "104.24", "131.0.72",
)

UNRESOLVED_IP = "Unable to resolve"
DNS_LOOKUP_FAILED = "DNS lookup failed"
LIMITED_REDIRECT_NOTE = "Accessible but redirect detection limited"

DNS_RECORD_TYPE_A = 1


def has_cdn_headers(headers: Mapping[str, str]) -> bool:
    """Заголовки CDN (регистр не важен)."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for header in CDN_HEADERS:
        if lowered.get(header):
            return True
    server = lowered.get("server") or ""
    return "cloudflare" in server.lower()


def ip_in_cdn_range(ip: Optional[str]) -> bool:
    """Префикс совпадает только по целым октетам: 104.16 не совпадает с 104.160.x.x."""
    if not ip:
        return False
    octets = ip.split(".")
    for prefix in CDN_IP_PREFIXES:
        prefix_octets = prefix.split(".")
        if octets[:len(prefix_octets)] == prefix_octets:
            return True
    return False


def cell_url(key: TopologyKey, domain: str) -> str:
    host = f"www.{domain}" if key.www else domain
    return f"{key.scheme}://{host}"


class TopologyChecker(BaseChecker):
    """Проверка всех четырёх вариантов схема × www."""

    check_id = CheckId.TOPOLOGY
    name = "topology"

    async def _check(self) -> CheckResult:
        # Ячейки и DoH опрашиваются параллельно, каждая в своём бюджете
        outcomes = await asyncio.gather(
            *(self.bounded_probe(key) for key in TOPOLOGY_ORDER),
            self.lookup_ip(),
        )
        ip_address, ip_note = outcomes[-1]
        cells: Dict[TopologyKey, TopologyCell] = {cell.key: cell for cell in outcomes[:-1]}
        matrix = TopologyMatrix(
            cells=cells,
            ip_address=ip_address,
            ip_lookup_note=ip_note,
            cdn_by_header=any(c.cdn_detected for c in cells.values()),
            cdn_by_ip=ip_in_cdn_range(ip_address),
        )

        status, details = self.assess(matrix)
        return self.result(status, details, analysis=matrix)

    @property
    def probe_timeout(self) -> float:
        """Бюджет одной ячейки (HEAD + запасной GET) и DoH-запроса."""
        config = self.context.config
        return min(2 * config.request_timeout_seconds, config.checker_timeout_seconds / 2)

    async def bounded_probe(self, key: TopologyKey) -> TopologyCell:
        try:
            return await asyncio.wait_for(self.probe(key), timeout=self.probe_timeout)
        except asyncio.TimeoutError:
            url = cell_url(key, self.target.domain)
            self.logger.debug(f"{url} gave no answer within {self.probe_timeout:g}s")
            return TopologyCell(key=key, url=url, reachable=False, error=f"Timed out after {self.probe_timeout:g}s")

    async def probe(self, key: TopologyKey) -> TopologyCell:
        """Одна ячейка матрицы. Сбой запроса не является ошибкой проверки."""
        url = cell_url(key, self.target.domain)
        try:
            response = await self.client.head(url, follow_redirects=True)
        except TRANSPORT_ERRORS as e:
            first_error = describe_error(e)
            self.logger.debug(f"{url} HEAD failed ({first_error}), trying reduced-fidelity probe")
            return await self._fallback_probe(key, url, first_error)

        return TopologyCell(
            key=key,
            url=url,
            reachable=True,
            status_code=response.status_code,
            final_url=str(response.url),
            redirected=bool(response.history),
            cdn_detected=has_cdn_headers(response.headers),
        )

    async def _fallback_probe(self, key: TopologyKey, url: str, first_error: str) -> TopologyCell:
        # Без следования редиректам: подтверждаем только доступность
        try:
            async with self.client.stream("GET", url, follow_redirects=False):
                pass
        except TRANSPORT_ERRORS as e:
            self.logger.debug(f"{url} unreachable: {describe_error(e)}")
            return TopologyCell(key=key, url=url, reachable=False, error=first_error)

        return TopologyCell(
            key=key,
            url=url,
            reachable=True,
            final_url=url,
            redirected=False,
            note=LIMITED_REDIRECT_NOTE,
        )

    async def lookup_ip(self) -> Tuple[Optional[str], Optional[str]]:
        """
        A-запись через DNS-over-HTTPS.

        Returns:
            (ip, None) при успехе, (None, пояснение) при неудаче
        """
        try:
            data = await asyncio.wait_for(self._query_doh(), timeout=self.probe_timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"DoH lookup for {self.target.domain} timed out")
            return None, DNS_LOOKUP_FAILED
        except (*TRANSPORT_ERRORS, ValueError) as e:
            self.logger.warning(f"DoH lookup for {self.target.domain} failed: {describe_error(e)}")
            return None, DNS_LOOKUP_FAILED

        answers = data.get("Answer") if isinstance(data, dict) else None
        if not isinstance(answers, list):
            return None, UNRESOLVED_IP
        answers = [a for a in answers if isinstance(a, dict)]

        for answer in answers:
            if answer.get("type") == DNS_RECORD_TYPE_A and answer.get("data"):
                return answer["data"], None
        for answer in answers:
            if "type" not in answer and answer.get("data"):
                return answer["data"], None
        return None, UNRESOLVED_IP

    @retry_async(max_attempts=2, base_delay=0.5, exceptions=TRANSPORT_ERRORS, max_attempts_attr="retry_attempts")
    async def _query_doh(self) -> dict:
        response = await self.client.get(
            self.context.config.doh_endpoint,
            params={"name": self.target.domain, "type": "A"},
            headers={"Accept": "application/dns-json"},
        )
        response.raise_for_status()
        return response.json()

    @property
    def retry_attempts(self) -> int:
        return self.context.config.retry_attempts

    def assess(self, matrix: TopologyMatrix) -> Tuple[CheckStatus, List[str]]:
        """Статус и строки отчёта по матрице."""
        details: List[str] = []

        ip_text = matrix.ip_address or matrix.ip_lookup_note
        if ip_text:
            cdn_text = " (Protected by Cloudflare)" if matrix.cdn_detected else ""
            details.append(f"🌐 Server IP: {ip_text}{cdn_text}")
            details.append("")

        if matrix.https_working:
            details.append("✅ HTTPS is working")
        else:
            details.append("❌ HTTPS not accessible")

        if matrix.http_redirects_to_https:
            details.append("✅ HTTP properly redirects to HTTPS")
        else:
            details.append("⚠️ HTTP does not redirect to HTTPS (security risk)")

        redirection = matrix.www_redirection
        if redirection is WwwRedirection.TO_WWW:
            details.append("🔄 Non-www redirects to www version")
            details.append(f"   • Preferred URL: {matrix.preferred_url}")
        elif redirection is WwwRedirection.TO_NON_WWW:
            details.append("🔄 www redirects to non-www version")
            details.append(f"   • Preferred URL: {matrix.preferred_url}")
        elif redirection is WwwRedirection.BOTH_WORK:
            details.append("⚠️ Both www and non-www versions work (should pick one)")
        else:
            details.append("❓ www/non-www redirection pattern unclear")

        details.append("")
        details.append("📋 Detailed Test Results:")
        for key in TOPOLOGY_ORDER:
            details.append(self._cell_line(matrix.cell(key)))

        details.append("")
        if matrix.https_working and matrix.http_redirects_to_https:
            status = CheckStatus.SUCCESS
            details.append("🔒 Excellent: HTTPS working and HTTP redirects properly")
        elif matrix.https_working:
            status = CheckStatus.WARNING
            details.append("⚠️ Good: HTTPS working but HTTP redirect needs improvement")
        else:
            status = CheckStatus.ERROR
            details.append("❌ Poor: HTTPS issues detected")

        return status, details

    @staticmethod
    def _cell_line(cell: TopologyCell) -> str:
        icon = "✅" if cell.reachable else "❌"
        line = f"   {icon} {cell.key.label}"
        if cell.redirected and cell.final_url:
            line += f" → {cell.final_url}"
        elif cell.reachable:
            line += " (direct access)"
        if cell.note:
            line += f" ({cell.note})"
        if cell.error:
            line += f" ({cell.error})"
        return line
