"""
Analytics & tracking detection.

detect_analytics(): чистая функция над HTML; AnalyticsChecker
загружает домашнюю страницу и превращает отпечатки в строки отчёта.
"""

from collections import Counter
from typing import List, Tuple

from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.errors import FetchError
from siteaudit.core.analysis import AnalyticsFingerprint, AnalyticsReport
from siteaudit.core.models import CheckId, CheckResult, CheckStatus
from siteaudit.signatures import (
    COOKIE_CONSENT_SIGNATURES,
    EXPECTED_TAG_OCCURRENCES,
    GA4_ID,
    GENERIC_CONSENT_SIGNATURE,
    GTM_ID,
    RETARGETING_SIGNATURES,
    TRACKER_SIGNATURES,
    UNIVERSAL_ANALYTICS_ID,
    ProviderSignature,
)

GOOGLE_ANALYTICS = "Google Analytics"
GOOGLE_TAG_MANAGER = "Google Tag Manager"

TRACKER_ICONS = {
    "Facebook Pixel": "📘",
    "Hotjar": "🔥",
    "Mixpanel": "📈",
    "Amplitude": "📊",
    "Segment": "🔗",
    "Intercom": "💬",
    "Zendesk": "🎧",
}


def _unique(values: List[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _excessive_counts(matches: List[str]) -> List[Tuple[str, int]]:
    """ID, встречающиеся больше ожидаемых двух раз, в порядке первого появления."""
    counts = Counter(matches)
    return [(tag_id, n) for tag_id, n in counts.items() if n > EXPECTED_TAG_OCCURRENCES]


def detect_google_analytics(html: str) -> AnalyticsFingerprint:
    """UA (устаревший) + GA4 с проверкой избыточных вхождений."""
    ua_matches = UNIVERSAL_ANALYTICS_ID.findall(html)
    ga4_matches = GA4_ID.findall(html)

    identifiers: List[str] = []
    versions: List[str] = []
    issues: List[str] = []

    if ua_matches:
        unique_ua = _unique(ua_matches)
        identifiers.extend(unique_ua)
        versions.append("Universal Analytics")
        issues.append(
            f"⚠️ Deprecated Universal Analytics tag(s) found: {', '.join(unique_ua)}. "
            f"These should be removed."
        )

    if ga4_matches:
        identifiers.extend(_unique(ga4_matches))
        versions.append("GA4")
        for tag_id, count in _excessive_counts(ga4_matches):
            issues.append(
                f"⚠️ Excessive GA4 ID counts: {tag_id} appears {count} times "
                f"(Standard gtag.js uses it twice)."
            )

    return AnalyticsFingerprint(
        provider_name=GOOGLE_ANALYTICS,
        found=bool(ua_matches or ga4_matches),
        matched_identifiers=tuple(identifiers),
        issues=tuple(issues),
        details=tuple(versions),
    )


def detect_tag_manager(html: str) -> AnalyticsFingerprint:
    """GTM: несколько разных контейнеров и избыточные вхождения одного ID."""
    matches = GTM_ID.findall(html)
    unique_gtm = _unique(matches)
    issues: List[str] = []

    if len(unique_gtm) > 1:
        issues.append(
            f"⚠️ Multiple distinct GTM containers detected ({', '.join(unique_gtm)}). "
            f"Verify if this is intentional."
        )
    for tag_id, count in _excessive_counts(matches):
        issues.append(
            f"⚠️ Excessive GTM counts: {tag_id} appears {count} times "
            f"(Standard is 2: Script + Noscript)."
        )

    return AnalyticsFingerprint(
        provider_name=GOOGLE_TAG_MANAGER,
        found=bool(matches),
        matched_identifiers=unique_gtm,
        issues=tuple(issues),
    )


def _detect_tracker(signature: ProviderSignature, html: str) -> AnalyticsFingerprint:
    found = signature.matches(html)
    identifiers = tuple(signature.all_identifiers(html)) if found else ()
    return AnalyticsFingerprint(
        provider_name=signature.name,
        found=found,
        matched_identifiers=identifiers,
    )


def detect_cookie_consent(html: str) -> Tuple[AnalyticsFingerprint, ...]:
    """
    Найденные платформы согласия на cookies.

    Если ни один конкретный провайдер не совпал, пробуются общие
    шаблоны баннера и сообщается синтетический провайдер "Generic/Custom".
    """
    found: List[AnalyticsFingerprint] = []
    for signature in COOKIE_CONSENT_SIGNATURES:
        if not signature.matches(html):
            continue
        identifiers = signature.first_identifiers(html)
        if identifiers:
            detail = f"{signature.name}: {', '.join(f'ID: {i}' for i in identifiers)}"
        else:
            detail = f"{signature.name}: Detected"
        found.append(
            AnalyticsFingerprint(
                provider_name=signature.name,
                found=True,
                matched_identifiers=tuple(identifiers),
                details=(detail,),
            )
        )

    if not found and GENERIC_CONSENT_SIGNATURE.matches(html):
        found.append(
            AnalyticsFingerprint(
                provider_name=GENERIC_CONSENT_SIGNATURE.name,
                found=True,
                details=(f"{GENERIC_CONSENT_SIGNATURE.name}: Cookie consent detected",),
            )
        )

    return tuple(found)


def detect_analytics(html: str) -> AnalyticsReport:
    """Полный набор отпечатков для страницы."""
    trackers = [detect_google_analytics(html), detect_tag_manager(html)]
    trackers.extend(_detect_tracker(signature, html) for signature in TRACKER_SIGNATURES)

    retargeting = tuple(
        AnalyticsFingerprint(provider_name=signature.name, found=True)
        for signature in RETARGETING_SIGNATURES
        if signature.matches(html)
    )

    return AnalyticsReport(
        trackers=tuple(trackers),
        cookie_consent=detect_cookie_consent(html),
        retargeting=retargeting,
    )


def format_analytics(report: AnalyticsReport) -> List[str]:
    """Строки отчёта."""
    lines: List[str] = []

    ga = report.tracker(GOOGLE_ANALYTICS)
    if ga and ga.found:
        lines.append(f"📊 Google Analytics: {', '.join(ga.details)}")
        if ga.matched_identifiers:
            lines.append(f"   • Tracking IDs: {', '.join(ga.matched_identifiers)}")
        lines.extend(ga.issues)

    gtm = report.tracker(GOOGLE_TAG_MANAGER)
    if gtm and gtm.found:
        lines.append("🏷️ Google Tag Manager")
        if gtm.matched_identifiers:
            lines.append(f"   • Container IDs: {', '.join(gtm.matched_identifiers)}")
        lines.extend(gtm.issues)

    for fingerprint in report.found_trackers:
        if fingerprint.provider_name in (GOOGLE_ANALYTICS, GOOGLE_TAG_MANAGER):
            continue
        icon = TRACKER_ICONS.get(fingerprint.provider_name, "•")
        lines.append(f"{icon} {fingerprint.provider_name}")
        if fingerprint.matched_identifiers:
            label = "Pixel IDs" if fingerprint.provider_name == "Facebook Pixel" else "Site IDs"
            lines.append(f"   • {label}: {', '.join(fingerprint.matched_identifiers)}")

    if report.retargeting_services:
        lines.append("🎯 Retargeting Services:")
        lines.extend(f"   • {service}" for service in report.retargeting_services)

    if report.consent_found:
        lines.append("🍪 Cookie Consent Providers:")
        lines.extend(f"   • {f.provider_name}" for f in report.cookie_consent)
        lines.append("")
        lines.append("📋 Provider Details:")
        for fingerprint in report.cookie_consent:
            lines.extend(f"   • {detail}" for detail in fingerprint.details)

    if not lines:
        lines.append("✅ No major analytics or tracking services detected")

    return lines


class AnalyticsChecker(BaseChecker):
    """Обнаружение аналитики, трекеров, cookie-баннеров и ретаргетинга."""

    check_id = CheckId.ANALYTICS
    name = "analytics"

    async def _check(self) -> CheckResult:
        try:
            page = await self.context.fetch_page()
        except FetchError as e:
            return self.result(
                CheckStatus.ERROR,
                ["❌ Analytics check failed", f"Error: {e.message}"],
                error=e.message,
            )

        report = detect_analytics(page.text)
        status = CheckStatus.WARNING if report.issues else CheckStatus.SUCCESS
        self.logger.debug(
            f"Found {len(report.found_trackers)} trackers, "
            f"{len(report.cookie_consent)} consent providers, {len(report.issues)} issues"
        )
        return self.result(status, format_analytics(report), analysis=report)
