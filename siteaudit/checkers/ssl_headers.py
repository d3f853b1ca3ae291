"""
SSL certificate and security headers checker.

Данные сертификата берутся по цепочке источников (SSL Labs → заголовки →
базовое подтверждение HTTPS). Недоступность данных сертификата никогда не
меняет статус проверки; статус определяют только заголовки безопасности.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from siteaudit.core.analysis import CertificateInfo, SecurityHeaderResult, SSLAnalysis
from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.http import TRANSPORT_ERRORS, describe_error
from siteaudit.core.models import CheckId, CheckResult, CheckStatus
from siteaudit.infrastructure.retry import retry_async


@dataclass(frozen=True)
class SecurityHeaderSpec:
    header: str
    name: str
    importance: str
    description: str


ESSENTIAL = "Essential"
RECOMMENDED = "Recommended"

SECURITY_HEADERS: Tuple[SecurityHeaderSpec, ...] = (
    SecurityHeaderSpec(
        "strict-transport-security", "HSTS", ESSENTIAL,
        "Prevents downgrade attacks and cookie hijacking",
    ),
    SecurityHeaderSpec(
        "content-security-policy", "CSP", RECOMMENDED,
        "Prevents XSS attacks and data injection",
    ),
    SecurityHeaderSpec(
        "x-frame-options", "X-Frame-Options", RECOMMENDED,
        "Prevents clickjacking attacks",
    ),
    SecurityHeaderSpec(
        "x-content-type-options", "X-Content-Type-Options", RECOMMENDED,
        "Prevents MIME type sniffing attacks",
    ),
)

# Грубая оценка по числу найденных заголовков
HEADER_GRADES = {4: "A", 3: "B", 2: "C", 1: "D", 0: "F"}

SOURCE_SSL_LABS = "ssl-labs"
SOURCE_HEADERS = "header-probe"
SOURCE_BASIC = "basic"

EXPIRY_WARNING_DAYS = 30


class SSLLabsNotReady(Exception):
    """Анализ SSL Labs не готов или без endpoints."""


def evaluate_security_headers(headers: Mapping[str, str]) -> Tuple[SecurityHeaderResult, ...]:
    lowered = {k.lower(): v for k, v in headers.items()}
    results = []
    for spec in SECURITY_HEADERS:
        value = lowered.get(spec.header)
        results.append(
            SecurityHeaderResult(
                header=spec.header,
                name=spec.name,
                importance=spec.importance,
                description=spec.description,
                found=bool(value),
                value=value or None,
            )
        )
    return tuple(results)


def _from_millis(value: Any) -> Optional[datetime]:
    if not isinstance(value, (int, float)) or value <= 0:
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _format_protocols(protocols: Any) -> Optional[str]:
    """SSL Labs отдаёт протоколы объектами {name, version}."""
    if not isinstance(protocols, list) or not protocols:
        return None
    names = []
    for protocol in protocols:
        if isinstance(protocol, dict):
            label = " ".join(str(protocol[k]) for k in ("name", "version") if protocol.get(k))
            if label:
                names.append(label)
        elif protocol:
            names.append(str(protocol))
    return ", ".join(names) or None


def parse_ssl_labs(data: Dict[str, Any]) -> CertificateInfo:
    """
    Разобрать ответ SSL Labs API v3.

    Raises:
        SSLLabsNotReady: статус не READY, нет endpoints или они не разбираются
    """
    if not isinstance(data, dict):
        raise SSLLabsNotReady("Unexpected SSL Labs response")
    endpoints = data.get("endpoints") or []
    if data.get("status") != "READY" or not endpoints:
        raise SSLLabsNotReady(f"SSL Labs status: {data.get('status')}")

    endpoint = endpoints[0] if isinstance(endpoints, list) else None
    if not isinstance(endpoint, dict):
        raise SSLLabsNotReady("Malformed SSL Labs endpoint")
    certs = data.get("certs") or []
    cert = certs[0] if isinstance(certs, list) and certs else {}
    if not isinstance(cert, dict):
        raise SSLLabsNotReady("Malformed SSL Labs certificate")
    details = endpoint.get("details")
    if not isinstance(details, dict):
        details = {}

    return CertificateInfo(
        source=SOURCE_SSL_LABS,
        grade=endpoint.get("grade"),
        issuer=cert.get("issuerLabel") or cert.get("issuerSubject"),
        valid_from=_from_millis(cert.get("notBefore")),
        valid_to=_from_millis(cert.get("notAfter")),
        protocols=_format_protocols(details.get("protocols")),
        key_size=cert.get("keySize"),
    )


def expiry_line(valid_to: datetime, now: datetime) -> str:
    days = math.ceil((valid_to - now).total_seconds() / 86400)
    if days > EXPIRY_WARNING_DAYS:
        return f"✅ Expires in {days} days"
    if days > 0:
        return f"⚠️ Expires in {days} days"
    return f"❌ Certificate expired {abs(days)} days ago"


def format_certificate(cert: CertificateInfo, now: datetime) -> List[str]:
    if cert.source == SOURCE_BASIC:
        return ["✅ HTTPS connection successful", "🔒 SSL certificate appears valid"]

    details = []
    if cert.grade:
        label = "SSL Grade" if cert.source == SOURCE_SSL_LABS else "Security Header Grade"
        details.append(f"🏆 {label}: {cert.grade}")
    if cert.issuer:
        details.append(f"🏢 Issuer: {cert.issuer}")
    if cert.valid_to:
        details.append(f"📅 Valid until: {cert.valid_to.strftime('%a %b %d %Y')}")
        details.append(expiry_line(cert.valid_to, now))
    if cert.protocols:
        details.append(f"🔐 Protocols: {cert.protocols}")
    if cert.key_size:
        details.append(f"🔑 Key size: {cert.key_size} bits")
    if cert.source == SOURCE_HEADERS:
        details.append("✅ HTTPS connection successful")
    return details


def format_headers(headers: Tuple[SecurityHeaderResult, ...]) -> List[str]:
    found = sum(1 for h in headers if h.found)
    details = [f"🛡️ Security Headers Analysis: {found}/{len(headers)} present"]
    for header in headers:
        icon = "✅" if header.found else "❌"
        importance = "🔴 Essential" if header.importance == ESSENTIAL else "🟡 Recommended"
        if header.found:
            details.append(f"   {icon} {header.name} ({importance})")
        else:
            details.append(f"   {icon} {header.name} ({importance}) - {header.description}")
    if found == len(headers):
        details.append("")
        details.append("🎉 Excellent: All recommended security headers are present!")
    return details


class SSLChecker(BaseChecker):
    """HTTPS-доступность, сведения о сертификате, заголовки безопасности."""

    check_id = CheckId.SSL
    name = "ssl"

    @property
    def retry_attempts(self) -> int:
        return self.context.config.retry_attempts

    async def _check(self) -> CheckResult:
        url = self.target.https_url

        try:
            await self.client.head(url, follow_redirects=True)
        except TRANSPORT_ERRORS as e:
            message = f"SSL connection failed: {describe_error(e)}"
            return self.result(CheckStatus.ERROR, [f"❌ {message}"], error=message)

        headers, headers_error = await self._probe_headers(url)
        certificate = await self._certificate(headers)

        analysis = SSLAnalysis(
            certificate=certificate,
            headers=headers or (),
            headers_error=headers_error,
        )

        details = format_certificate(certificate, self.context.now())
        details.append("")
        if headers is None:
            details.append("⚠️ Security headers analysis failed")
            details.append(f"❌ Security headers analysis failed: {headers_error}")
            status = CheckStatus.WARNING
        else:
            details.extend(format_headers(headers))
            status = CheckStatus.WARNING if analysis.header_count == 0 else CheckStatus.SUCCESS

        return self.result(status, details, analysis=analysis)

    async def _probe_headers(self, url: str) -> Tuple[Optional[Tuple[SecurityHeaderResult, ...]], Optional[str]]:
        """Отдельный HEAD-запрос для анализа заголовков."""
        try:
            response = await self.client.head(url, follow_redirects=True)
        except TRANSPORT_ERRORS as e:
            self.logger.warning(f"Header probe for {url} failed: {describe_error(e)}")
            return None, describe_error(e)
        return evaluate_security_headers(response.headers), None

    async def _certificate(self, headers: Optional[Tuple[SecurityHeaderResult, ...]]) -> CertificateInfo:
        """Цепочка источников; следующий опрашивается, только если предыдущий недоступен."""
        if self.context.config.use_ssl_labs:
            try:
                data = await self._query_ssl_labs()
                return parse_ssl_labs(data)
            except (*TRANSPORT_ERRORS, ValueError, SSLLabsNotReady) as e:
                self.logger.debug(f"SSL Labs tier unavailable: {describe_error(e)}")

        if headers is not None:
            found = sum(1 for h in headers if h.found)
            return CertificateInfo(source=SOURCE_HEADERS, grade=HEADER_GRADES[found])

        return CertificateInfo(source=SOURCE_BASIC)

    @retry_async(max_attempts=2, base_delay=1.0, exceptions=TRANSPORT_ERRORS, max_attempts_attr="retry_attempts")
    async def _query_ssl_labs(self) -> Dict[str, Any]:
        response = await self.client.get(
            self.context.config.ssl_labs_endpoint,
            params={"host": self.target.domain, "publish": "off", "all": "done"},
        )
        response.raise_for_status()
        return response.json()
