"""
Tests для генератора отчётов (Markdown, JSON, рекомендации).
"""

import json
from datetime import timedelta

import pytest

from siteaudit.core.analysis import ImageAnalysis, TopologyCell, TopologyKey, TopologyMatrix
from siteaudit.core.models import AuditReport, AuditTarget, CheckId, CheckResult, CheckStatus
from siteaudit.reports.generator import ReportGenerator

from conftest import FIXED_NOW


def _matrix(https_ok: bool) -> TopologyMatrix:
    cells = {
        key: TopologyCell(key=key, url=f"{key.scheme}://example.com", reachable=https_ok and key.scheme == "https")
        for key in TopologyKey
    }
    return TopologyMatrix(cells=cells)


@pytest.fixture
def report():
    return AuditReport(
        target=AuditTarget("example.com"),
        results=(
            CheckResult(
                check_id=CheckId.TOPOLOGY,
                status=CheckStatus.WARNING,
                details=("✅ HTTPS is working",),
                analysis=_matrix(https_ok=True),
                duration_ms=10,
            ),
            CheckResult.failure(CheckId.ROBOTS, "HTTP 404: Not Found"),
            CheckResult(
                check_id=CheckId.IMAGES,
                status=CheckStatus.ERROR,
                details=("❌ SEO: 1 image(s) missing ALT text",),
                analysis=ImageAnalysis(total=1, missing_alt=("/a.png",), missing_dimensions=("/a.png",)),
            ),
        ),
        started_at=FIXED_NOW,
        completed_at=FIXED_NOW + timedelta(seconds=2),
        summary_title="Checks Complete (Some Issues Found)",
    )


class TestMarkdown:

    def test_sections_in_result_order(self, report):
        text = ReportGenerator().render_markdown(report)

        assert text.startswith("# Site Audit Report: example.com")
        topology = text.index("## ⚠️ 🔒 HTTPS/HTTP Security Analysis")
        robots = text.index("## ❌ 🤖 Robots.txt Analysis")
        images = text.index("## ❌ 🖼️ Image Optimization & Accessibility")
        assert topology < robots < images
        assert "- ❌ **Error:** 2" in text
        assert "*Audit completed at 2025-06-01 12:00:02 in 2.00 seconds*" in text

    def test_writes_timestamped_file(self, report, tmp_path):
        path = ReportGenerator(tmp_path).generate_markdown_report(report)
        assert path.endswith("audit_report_example_com_20250601_120002.md")
        with open(path, encoding="utf-8") as f:
            assert "Site Audit Report" in f.read()


class TestJson:

    def test_round_trips_through_json(self, report, tmp_path):
        path = ReportGenerator(tmp_path).generate_report(report, format="json")
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        assert data["domain"] == "example.com"
        assert data["overall_status"] == "error"
        assert [r["check_id"] for r in data["results"]] == ["topology", "robots", "images"]
        assert data["results"][0]["analysis"]["cells"]["https-non-www"]["reachable"] is True
        assert data["counts"] == {"success": 0, "warning": 1, "error": 2}
        assert data["recommendations"]


class TestRecommendations:

    def test_priorities(self, report):
        recs = ReportGenerator().generate_recommendations(report)
        titles = [r["title"] for r in recs]

        assert "Redirect HTTP to HTTPS" in titles
        assert "Add alt text to images" in titles
        assert "Re-run failed checks" in titles
        priorities = [r["priority"] for r in recs]
        assert priorities == sorted(priorities, key=["critical", "high", "medium", "low"].index)

    def test_https_down_is_critical(self):
        report = AuditReport(
            target=AuditTarget("example.com"),
            results=(CheckResult(check_id=CheckId.TOPOLOGY, status=CheckStatus.ERROR, analysis=_matrix(False)),),
            started_at=FIXED_NOW,
            completed_at=FIXED_NOW,
            summary_title="x",
        )
        recs = ReportGenerator().generate_recommendations(report)
        assert recs[0] == {
            "title": "Enable HTTPS",
            "description": "Neither the www nor the non-www host answers over HTTPS",
            "priority": "critical",
            "check": "topology",
        }
