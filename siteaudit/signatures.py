"""
Declarative provider signature tables.

Добавление нового провайдера означает изменение данных, а не кода:
достаточно дописать ProviderSignature в соответствующую таблицу.
"""

import re
from dataclasses import dataclass, field
from typing import List, Pattern, Tuple


@dataclass(frozen=True)
class ProviderSignature:
    """
    Подпись провайдера.

    patterns: OR-комбинация сигнатур; провайдер найден, если совпала хотя бы одна.
    id_patterns: необязательные шаблоны для извлечения идентификатора (группа 1).
    """
    name: str
    patterns: Tuple[str, ...]
    id_patterns: Tuple[str, ...] = ()
    flags: int = 0
    compiled: Tuple[Pattern, ...] = field(init=False, repr=False, compare=False)
    compiled_ids: Tuple[Pattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "compiled", tuple(re.compile(p, self.flags) for p in self.patterns))
        object.__setattr__(self, "compiled_ids", tuple(re.compile(p, self.flags) for p in self.id_patterns))

    def matches(self, html: str) -> bool:
        return any(p.search(html) for p in self.compiled)

    def first_identifiers(self, html: str) -> List[str]:
        """Первое совпадение каждого id-шаблона (если у него есть группа 1)."""
        identifiers = []
        for pattern in self.compiled_ids:
            match = pattern.search(html)
            if match and pattern.groups >= 1 and match.group(1):
                identifiers.append(match.group(1))
        return identifiers

    def all_identifiers(self, html: str) -> List[str]:
        """Все совпадения всех id-шаблонов, в порядке появления."""
        identifiers = []
        for pattern in self.compiled_ids:
            for match in pattern.finditer(html):
                if pattern.groups >= 1 and match.group(1):
                    identifiers.append(match.group(1))
        return identifiers


# === Google identifiers ===
UNIVERSAL_ANALYTICS_ID = re.compile(r"UA-\d+-\d+")
GA4_ID = re.compile(r"G-[A-Z0-9]+")
GTM_ID = re.compile(r"GTM-[A-Z0-9]+")

# Стандартный сниппет упоминает один ID дважды:
# gtag.js (src + config) и GTM (script + noscript)
EXPECTED_TAG_OCCURRENCES = 2


# === Trackers (case-sensitive substring checks) ===
TRACKER_SIGNATURES: Tuple[ProviderSignature, ...] = (
    ProviderSignature(
        name="Facebook Pixel",
        patterns=(r"fbq\(['\"]init['\"],\s*['\"](\d+)['\"]", r"connect\.facebook\.net"),
        id_patterns=(r"fbq\(['\"]init['\"],\s*['\"](\d+)['\"]",),
    ),
    ProviderSignature(
        name="Hotjar",
        patterns=(r"hjid:(\d+)", r"static\.hotjar\.com"),
        id_patterns=(r"hjid:(\d+)",),
    ),
    ProviderSignature(name="Mixpanel", patterns=(r"mixpanel", r"cdn\.mxpnl\.com")),
    ProviderSignature(name="Amplitude", patterns=(r"amplitude", r"cdn\.amplitude\.com")),
    ProviderSignature(name="Segment", patterns=(r"segment\.com", r"cdn\.segment\.com")),
    ProviderSignature(name="Intercom", patterns=(r"intercom", r"widget\.intercom\.io")),
    ProviderSignature(name="Zendesk", patterns=(r"zendesk", r"static\.zdassets\.com")),
)


# === Cookie consent platforms ===
COOKIE_CONSENT_SIGNATURES: Tuple[ProviderSignature, ...] = (
    ProviderSignature(
        name="OneTrust",
        patterns=(r"onetrust\.com", r"otSDKStub", r"OneTrust", r"ot-sdk", r"optanon"),
        id_patterns=(r'data-domain-script="([^"]+)"', r"optanonwrapper"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Cookiebot",
        patterns=(r"cookiebot\.com", r"consent\.cookiebot\.com", r"Cookiebot", r"CookieConsent"),
        id_patterns=(r'data-cbid="([^"]+)"', r'cookiebot.*id.*=.*"([^"]+)"'),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="CookieYes",
        patterns=(r"cookieyes\.com", r"app\.cookieyes\.com", r"CookieYes", r"cky-"),
        id_patterns=(r'cky-.*="([^"]+)"',),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Osano",
        patterns=(r"osano\.com", r"cmp\.osano\.com", r"Osano"),
        id_patterns=(r"osano.*customer.*id",),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="TrustArc",
        patterns=(r"trustarc\.com", r"consent\.trustarc\.com", r"TrustArc", r"truste\.com"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Quantcast Choice",
        patterns=(r"quantcast\.com", r"choice\.quantcast\.com", r"qcCmpApi", r"__tcfapi"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Termly",
        patterns=(r"termly\.io", r"app\.termly\.io", r"Termly"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Cookie Script",
        patterns=(r"cookie-script\.com", r"CookieScript"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Klaro",
        patterns=(r"klaro", r"klaroConfig"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Cookie Notice",
        patterns=(r"cookie.*notice", r"cookieNotice"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Complianz",
        patterns=(r"complianz", r"cmplz"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="iubenda",
        patterns=(r"iubenda\.com", r"iubenda", r"_iub"),
        id_patterns=(r"iubenda.*siteId.*:.*['\"]\s*(\d+)",),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Usercentrics",
        patterns=(r"usercentrics", r"app\.usercentrics"),
        id_patterns=(r'data-settings-id="([^"]+)"',),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Consensu",
        patterns=(r"consensu", r"app\.consensu"),
        flags=re.IGNORECASE,
    ),
    ProviderSignature(
        name="Consentmanager",
        patterns=(r"consentmanager", r"cdn\.consentmanager"),
        flags=re.IGNORECASE,
    ),
)

GENERIC_CONSENT_NAME = "Generic/Custom"

# Пробуются только если ни один конкретный провайдер не найден
GENERIC_CONSENT_SIGNATURE = ProviderSignature(
    name=GENERIC_CONSENT_NAME,
    patterns=(
        r"cookie.*consent",
        r"gdpr.*consent",
        r"accept.*cookie",
        r"cookie.*banner",
        r"privacy.*consent",
        r"cookieConsent",
        r"data-cookie",
        r"cookie.*policy.*accept",
    ),
    flags=re.IGNORECASE,
)


# === Retargeting pixels ===
RETARGETING_SIGNATURES: Tuple[ProviderSignature, ...] = (
    ProviderSignature(name="Google Ads", patterns=(r"googleadservices\.com",), flags=re.IGNORECASE),
    ProviderSignature(name="Microsoft Ads", patterns=(r"bat\.bing\.com",), flags=re.IGNORECASE),
    ProviderSignature(name="LinkedIn", patterns=(r"snap\.licdn\.com",), flags=re.IGNORECASE),
    ProviderSignature(name="Twitter", patterns=(r"analytics\.twitter\.com",), flags=re.IGNORECASE),
    ProviderSignature(name="Pinterest", patterns=(r"ct\.pinterest\.com",), flags=re.IGNORECASE),
)

