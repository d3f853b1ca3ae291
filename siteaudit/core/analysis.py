"""
Analysis payloads produced by the checkers.

Each checker attaches exactly one payload type to its CheckResult
(see ANALYSIS_TYPES in models.py). All payloads are immutable.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def to_plain(value: Any) -> Any:
    """Рекурсивно преобразовать payload в JSON-совместимую структуру."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {to_plain(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    return value


class Payload:
    """Mixin: сериализация payload'а в dict."""

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ═══════════════════════════════════════════════════════
# TOPOLOGY
# ═══════════════════════════════════════════════════════

class TopologyKey(str, Enum):
    """Ячейка матрицы: схема × форма хоста."""
    HTTPS_NON_WWW = "https-non-www"
    HTTPS_WWW = "https-www"
    HTTP_NON_WWW = "http-non-www"
    HTTP_WWW = "http-www"

    @property
    def scheme(self) -> str:
        return "https" if self.value.startswith("https") else "http"

    @property
    def www(self) -> bool:
        return not self.value.endswith("non-www")

    @property
    def label(self) -> str:
        host_form = "www" if self.www else "non-www"
        return f"{self.scheme.upper()} ({host_form})"


# Canonical probe order
TOPOLOGY_ORDER: Tuple[TopologyKey, ...] = (
    TopologyKey.HTTPS_NON_WWW,
    TopologyKey.HTTPS_WWW,
    TopologyKey.HTTP_NON_WWW,
    TopologyKey.HTTP_WWW,
)


class WwwRedirection(str, Enum):
    TO_WWW = "to-www"
    TO_NON_WWW = "to-non-www"
    BOTH_WORK = "both-work"
    UNCLEAR = "unclear"


@dataclass(frozen=True)
class TopologyCell(Payload):
    """Результат одного запроса из матрицы. Неудача тоже валидное значение ячейки."""
    key: TopologyKey
    url: str
    reachable: bool
    status_code: Optional[int] = None
    final_url: Optional[str] = None
    redirected: bool = False
    cdn_detected: bool = False
    note: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class TopologyMatrix(Payload):
    """
    Матрица 2×2 (scheme × host-form).

    Всегда содержит ровно четыре ячейки; производные классификации
    вычисляются из ячеек и не зависят от порядка опроса.
    """
    cells: Dict[TopologyKey, TopologyCell]
    ip_address: Optional[str] = None
    ip_lookup_note: Optional[str] = None
    cdn_by_header: bool = False
    cdn_by_ip: bool = False

    def __post_init__(self):
        if set(self.cells) != set(TopologyKey):
            missing = sorted(k.value for k in set(TopologyKey) - set(self.cells))
            raise ValueError(f"Topology matrix requires exactly four cells, missing: {missing}")

    def cell(self, key: TopologyKey) -> TopologyCell:
        return self.cells[key]

    @property
    def cdn_detected(self) -> bool:
        return self.cdn_by_header or self.cdn_by_ip

    @property
    def https_working(self) -> bool:
        return (
            self.cells[TopologyKey.HTTPS_NON_WWW].reachable
            or self.cells[TopologyKey.HTTPS_WWW].reachable
        )

    @property
    def http_redirects_to_https(self) -> bool:
        for key in (TopologyKey.HTTP_NON_WWW, TopologyKey.HTTP_WWW):
            cell = self.cells[key]
            if cell.redirected and (cell.final_url or "").startswith("https:"):
                return True
        return False

    @property
    def www_redirection(self) -> WwwRedirection:
        www = self.cells[TopologyKey.HTTPS_WWW]
        non_www = self.cells[TopologyKey.HTTPS_NON_WWW]

        if www.redirected and non_www.reachable and not non_www.redirected:
            return WwwRedirection.TO_NON_WWW
        if non_www.redirected and www.reachable and not www.redirected:
            return WwwRedirection.TO_WWW
        if www.reachable and non_www.reachable and not www.redirected and not non_www.redirected:
            return WwwRedirection.BOTH_WORK
        return WwwRedirection.UNCLEAR

    @property
    def preferred_url(self) -> Optional[str]:
        redirection = self.www_redirection
        if redirection is WwwRedirection.TO_NON_WWW:
            cell = self.cells[TopologyKey.HTTPS_NON_WWW]
        elif redirection is WwwRedirection.TO_WWW:
            cell = self.cells[TopologyKey.HTTPS_WWW]
        else:
            return None
        return cell.final_url or cell.url

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cells": {key.value: to_plain(self.cells[key]) for key in TOPOLOGY_ORDER},
            "ip_address": self.ip_address,
            "ip_lookup_note": self.ip_lookup_note,
            "cdn_detected": self.cdn_detected,
            "https_working": self.https_working,
            "http_redirects_to_https": self.http_redirects_to_https,
            "www_redirection": self.www_redirection.value,
            "preferred_url": self.preferred_url,
        }


# ═══════════════════════════════════════════════════════
# ROBOTS
# ═══════════════════════════════════════════════════════

@dataclass(frozen=True)
class RobotsRule(Payload):
    user_agent: str
    path: str


@dataclass(frozen=True)
class RobotsAnalysis(Payload):
    user_agents: Tuple[str, ...] = ()
    disallowed_paths: Tuple[RobotsRule, ...] = ()
    allowed_paths: Tuple[RobotsRule, ...] = ()
    sitemaps: Tuple[str, ...] = ()
    crawl_delay: Optional[int] = None
    has_wildcard: bool = False
    total_lines: int = 0
    is_empty: bool = False
    size: int = 0


# ═══════════════════════════════════════════════════════
# ANALYTICS
# ═══════════════════════════════════════════════════════

@dataclass(frozen=True)
class AnalyticsFingerprint(Payload):
    """Отпечаток одного провайдера: найден ли, какие ID, какие предупреждения."""
    provider_name: str
    found: bool = False
    matched_identifiers: Tuple[str, ...] = ()
    issues: Tuple[str, ...] = ()
    details: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnalyticsReport(Payload):
    trackers: Tuple[AnalyticsFingerprint, ...] = ()
    cookie_consent: Tuple[AnalyticsFingerprint, ...] = ()
    retargeting: Tuple[AnalyticsFingerprint, ...] = ()

    def tracker(self, provider_name: str) -> Optional[AnalyticsFingerprint]:
        for fingerprint in self.trackers:
            if fingerprint.provider_name == provider_name:
                return fingerprint
        return None

    @property
    def found_trackers(self) -> Tuple[AnalyticsFingerprint, ...]:
        return tuple(f for f in self.trackers if f.found)

    @property
    def consent_found(self) -> bool:
        return any(f.found for f in self.cookie_consent)

    @property
    def retargeting_services(self) -> Tuple[str, ...]:
        return tuple(f.provider_name for f in self.retargeting if f.found)

    @property
    def issues(self) -> Tuple[str, ...]:
        collected = []
        for fingerprint in self.trackers + self.cookie_consent + self.retargeting:
            collected.extend(fingerprint.issues)
        return tuple(collected)


# ═══════════════════════════════════════════════════════
# SSL / SECURITY HEADERS
# ═══════════════════════════════════════════════════════

@dataclass(frozen=True)
class CertificateInfo(Payload):
    source: str
    grade: Optional[str] = None
    issuer: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    protocols: Optional[str] = None
    key_size: Optional[int] = None


@dataclass(frozen=True)
class SecurityHeaderResult(Payload):
    header: str
    name: str
    importance: str
    description: str
    found: bool
    value: Optional[str] = None


@dataclass(frozen=True)
class SSLAnalysis(Payload):
    certificate: Optional[CertificateInfo] = None
    headers: Tuple[SecurityHeaderResult, ...] = ()
    headers_error: Optional[str] = None

    @property
    def header_count(self) -> int:
        return sum(1 for h in self.headers if h.found)

    @property
    def grade(self) -> Optional[str]:
        return self.certificate.grade if self.certificate else None


# ═══════════════════════════════════════════════════════
# META / SEO
# ═══════════════════════════════════════════════════════

class LengthRating(str, Enum):
    MISSING = "missing"
    TOO_SHORT = "too-short"
    OPTIMAL = "optimal"
    TOO_LONG = "too-long"


@dataclass(frozen=True)
class TextMeta(Payload):
    content: str = ""
    present: bool = False
    rating: LengthRating = LengthRating.MISSING

    @property
    def length(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class RobotsMeta(Payload):
    content: str = ""
    present: bool = False
    noindex: bool = False
    nofollow: bool = False

    @property
    def restrictive(self) -> bool:
        return self.noindex or self.nofollow


@dataclass(frozen=True)
class SocialTags(Payload):
    """Typed subset + raw list of og:* / twitter:* properties."""
    typed: Dict[str, str] = field(default_factory=dict)
    tags: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class StructuredData(Payload):
    blocks: int = 0
    types: Tuple[str, ...] = ()
    invalid_blocks: int = 0

    @property
    def found(self) -> bool:
        return self.blocks > 0


@dataclass(frozen=True)
class MetaAnalysis(Payload):
    title: TextMeta = field(default_factory=TextMeta)
    description: TextMeta = field(default_factory=TextMeta)
    keywords: Tuple[str, ...] = ()
    viewport: Optional[str] = None
    charset: Optional[str] = None
    canonical: Optional[str] = None
    robots: RobotsMeta = field(default_factory=RobotsMeta)
    open_graph: SocialTags = field(default_factory=SocialTags)
    twitter_card: SocialTags = field(default_factory=SocialTags)
    hreflang: Tuple[Tuple[str, str], ...] = ()
    structured_data: StructuredData = field(default_factory=StructuredData)

    @property
    def viewport_responsive(self) -> bool:
        return bool(self.viewport) and "width=device-width" in self.viewport


# ═══════════════════════════════════════════════════════
# CONTENT / COMPLIANCE
# ═══════════════════════════════════════════════════════

@dataclass(frozen=True)
class CopyrightCheck(Payload):
    found: bool = False
    text: str = ""
    year: Optional[int] = None
    company_name: str = ""
    location: str = "Not found"
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WebFontsCheck(Payload):
    found: bool = False
    fonts: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SocialLink(Payload):
    platform: str
    url: str
    text: str = ""
    opens_in_new_tab: bool = False
    has_noopener: bool = False
    has_noreferrer: bool = False

    @property
    def secure(self) -> bool:
        return self.opens_in_new_tab and (self.has_noopener or self.has_noreferrer)


@dataclass(frozen=True)
class SocialLinksCheck(Payload):
    found: bool = False
    links: Tuple[SocialLink, ...] = ()
    issues: Tuple[str, ...] = ()

    @property
    def platforms(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(link.platform for link in self.links))


@dataclass(frozen=True)
class ContentAnalysis(Payload):
    copyright: CopyrightCheck = field(default_factory=CopyrightCheck)
    web_fonts: WebFontsCheck = field(default_factory=WebFontsCheck)
    social_links: SocialLinksCheck = field(default_factory=SocialLinksCheck)


# ═══════════════════════════════════════════════════════
# IMAGES
# ═══════════════════════════════════════════════════════

@dataclass(frozen=True)
class ImageAnalysis(Payload):
    total: int = 0
    missing_alt: Tuple[str, ...] = ()
    empty_alt: Tuple[str, ...] = ()
    valid_alt: Tuple[str, ...] = ()
    missing_dimensions: Tuple[str, ...] = ()
    lazy_loaded: int = 0

    @property
    def lazy_percent(self) -> int:
        if not self.total:
            return 0
        return round(self.lazy_loaded / self.total * 100)
