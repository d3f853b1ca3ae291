"""
Report generator for audit results.

Generates:
- Markdown reports for human reading
- JSON reports for machine processing
- Recommendations derived from the analysis payloads
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from siteaudit.core.analysis import (
    AnalyticsReport,
    ContentAnalysis,
    ImageAnalysis,
    MetaAnalysis,
    SSLAnalysis,
    TopologyMatrix,
    WwwRedirection,
)
from siteaudit.core.models import AuditReport, CheckId, CheckResult, CheckStatus

STATUS_GLYPHS = {
    CheckStatus.SUCCESS: "✅",
    CheckStatus.WARNING: "⚠️",
    CheckStatus.ERROR: "❌",
    CheckStatus.PENDING: "⏳",
    CheckStatus.TESTING: "🔄",
}

SECTION_TITLES = {
    CheckId.TOPOLOGY: "🔒 HTTPS/HTTP Security Analysis",
    CheckId.ROBOTS: "🤖 Robots.txt Analysis",
    CheckId.ANALYTICS: "📊 Analytics & Tracking",
    CheckId.SSL: "🔐 SSL & Security Headers",
    CheckId.META: "🏷️ Meta Tags & SEO",
    CheckId.CONTENT: "🎨 Content and Style",
    CheckId.IMAGES: "🖼️ Image Optimization & Accessibility",
}

PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


class ReportGenerator:
    """Генератор отчётов аудита."""

    def __init__(self, output_dir: Optional[Path] = None):
        """
        Args:
            output_dir: Директория для сохранения отчётов (по умолчанию audit_reports/)
        """
        self.output_dir = Path(output_dir) if output_dir else Path("audit_reports")

    def generate_report(self, report: AuditReport, format: str = "markdown") -> str:
        """
        Генерация отчёта.

        Args:
            report: Итог аудита
            format: Формат отчёта ("markdown" или "json")

        Returns:
            Путь к сгенерированному файлу
        """
        if format == "json":
            return self.generate_json_report(report)
        return self.generate_markdown_report(report)

    def _filepath(self, report: AuditReport, extension: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp_str = report.completed_at.strftime("%Y%m%d_%H%M%S")
        domain = report.target.domain.replace(".", "_")
        return self.output_dir / f"audit_report_{domain}_{timestamp_str}.{extension}"

    def render_markdown(self, report: AuditReport) -> str:
        """Текст Markdown-отчёта (один раздел на результат, в порядке объявления)."""
        lines = []

        lines.append(f"# Site Audit Report: {report.target.domain}")
        lines.append("")
        lines.append(f"**{STATUS_GLYPHS[report.overall_status]} {report.summary_title}**")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        counts = report.count_by_status()
        for status in (CheckStatus.SUCCESS, CheckStatus.WARNING, CheckStatus.ERROR):
            lines.append(f"- {STATUS_GLYPHS[status]} **{status.value.capitalize()}:** {counts[status.value]}")
        lines.append("")

        for result in report.results:
            lines.extend(self._render_section(result))

        recommendations = self.generate_recommendations(report)
        if recommendations:
            lines.append("## Recommendations")
            lines.append("")
            for i, rec in enumerate(recommendations, 1):
                lines.append(f"{i}. **{rec['title']}**")
                lines.append(f"   - {rec['description']}")
                lines.append(f"   - Priority: {rec['priority']}")
                lines.append("")

        lines.append("---")
        lines.append(f"*Audit completed at {report.completed_at.strftime('%Y-%m-%d %H:%M:%S')} "
                     f"in {report.duration_seconds:.2f} seconds*")
        return "\n".join(lines)

    def _render_section(self, result: CheckResult) -> List[str]:
        title = SECTION_TITLES.get(result.check_id, result.check_id.value)
        lines = [f"## {STATUS_GLYPHS[result.status]} {title}", ""]
        if result.error and not any(result.error in line for line in result.details):
            lines.append(f"**Error:** {result.error}")
            lines.append("")
        if result.details:
            lines.append("```")
            lines.extend(result.details)
            lines.append("```")
            lines.append("")
        lines.append(f"*Duration: {result.duration_ms:.2f}ms*")
        lines.append("")
        return lines

    def generate_markdown_report(self, report: AuditReport) -> str:
        """
        Генерация Markdown отчёта.

        Returns:
            Путь к файлу отчёта
        """
        filepath = self._filepath(report, "md")
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.render_markdown(report))
        return str(filepath)

    def generate_json_report(self, report: AuditReport) -> str:
        """
        Генерация JSON отчёта.

        Returns:
            Путь к файлу отчёта
        """
        filepath = self._filepath(report, "json")
        report_dict = report.to_dict()
        report_dict["recommendations"] = self.generate_recommendations(report)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(report_dict, f, indent=2, ensure_ascii=False)
        return str(filepath)

    def generate_recommendations(self, report: AuditReport) -> List[Dict[str, Any]]:
        """
        Генерация рекомендаций по данным анализа.

        Returns:
            Список рекомендаций, отсортированный по приоритету
        """
        recommendations: List[Dict[str, Any]] = []

        def add(title: str, description: str, priority: str, check_id: CheckId):
            recommendations.append({
                "title": title,
                "description": description,
                "priority": priority,
                "check": check_id.value,
            })

        # 1. Topology
        matrix = self._analysis(report, CheckId.TOPOLOGY, TopologyMatrix)
        if matrix:
            if not matrix.https_working:
                add("Enable HTTPS", "Neither the www nor the non-www host answers over HTTPS",
                    "critical", CheckId.TOPOLOGY)
            elif not matrix.http_redirects_to_https:
                add("Redirect HTTP to HTTPS", "Plain HTTP requests are served without redirecting to HTTPS",
                    "high", CheckId.TOPOLOGY)
            if matrix.www_redirection is WwwRedirection.BOTH_WORK:
                add("Pick a canonical host", "Both www and non-www answer directly; redirect one to the other",
                    "medium", CheckId.TOPOLOGY)

        # 2. SSL / headers
        ssl = self._analysis(report, CheckId.SSL, SSLAnalysis)
        if ssl and ssl.headers:
            missing = [h.name for h in ssl.headers if not h.found]
            essential_missing = [h.name for h in ssl.headers if not h.found and h.importance == "Essential"]
            if essential_missing:
                add("Enable HSTS", "Strict-Transport-Security header is missing", "high", CheckId.SSL)
            elif missing:
                add("Add security headers", f"Missing: {', '.join(missing)}", "medium", CheckId.SSL)

        # 3. Analytics
        analytics = self._analysis(report, CheckId.ANALYTICS, AnalyticsReport)
        if analytics and analytics.issues:
            add("Clean up tracking tags", f"{len(analytics.issues)} tag issue(s) detected", "medium",
                CheckId.ANALYTICS)

        # 4. Meta
        meta = self._analysis(report, CheckId.META, MetaAnalysis)
        if meta:
            if meta.robots.noindex:
                add("Review robots meta", "The home page is marked noindex", "high", CheckId.META)
            missing_meta = [label for label, item in (("title", meta.title), ("description", meta.description))
                            if not item.present]
            if missing_meta:
                add("Add missing meta tags", f"Missing: {', '.join(missing_meta)}", "medium", CheckId.META)

        # 5. Content
        content = self._analysis(report, CheckId.CONTENT, ContentAnalysis)
        if content and content.copyright.issues:
            add("Update copyright notice", content.copyright.issues[0], "low", CheckId.CONTENT)

        # 6. Images
        images = self._analysis(report, CheckId.IMAGES, ImageAnalysis)
        if images and images.missing_alt:
            add("Add alt text to images", f"{len(images.missing_alt)} image(s) have no alt attribute",
                "high", CheckId.IMAGES)

        # 7. Failed checks
        failed = [r.check_id for r in report.results if r.status is CheckStatus.ERROR and r.analysis is None]
        if failed:
            add("Re-run failed checks", f"Could not complete: {', '.join(c.value for c in failed)}",
                "medium", failed[0])

        recommendations.sort(key=lambda x: PRIORITY_ORDER.get(x["priority"], 99))
        return recommendations

    @staticmethod
    def _analysis(report: AuditReport, check_id: CheckId, expected: type):
        result = report.result_for(check_id)
        if result is None or not isinstance(result.analysis, expected):
            return None
        return result.analysis

    def print_summary(self, report: AuditReport):
        """Вывести краткую сводку в консоль."""
        print("\n" + "=" * 60)
        print(f"AUDIT SUMMARY: {report.target.domain}")
        print("=" * 60)
        print(f"\n{STATUS_GLYPHS[report.overall_status]} {report.summary_title}")
        print(f"Duration: {report.duration_seconds:.2f}s\n")
        for result in report.results:
            title = SECTION_TITLES.get(result.check_id, result.check_id.value)
            print(f"  {STATUS_GLYPHS[result.status]} {title}")
        print("\n" + "=" * 60)
