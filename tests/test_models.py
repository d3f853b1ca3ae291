"""
Unit tests для моделей данных: AuditTarget, CheckResult, AuditReport, TopologyMatrix.
"""

from datetime import timedelta

import pytest
from hypothesis import given, settings, strategies as st

from siteaudit.core.analysis import (
    ImageAnalysis,
    RobotsAnalysis,
    TopologyCell,
    TopologyKey,
    TopologyMatrix,
    WwwRedirection,
)
from siteaudit.core.errors import TargetResolutionError
from siteaudit.core.models import (
    AuditReport,
    AuditTarget,
    CheckId,
    CheckResult,
    CheckStatus,
)

from conftest import FIXED_NOW


# ═══════════════════════════════════════════════════════
# AUDIT TARGET
# ═══════════════════════════════════════════════════════

class TestAuditTarget:
    """Разбор пользовательского ввода в домен."""

    @pytest.mark.parametrize("raw", [
        "example.com",
        "www.example.com",
        "https://www.example.com/some/page?x=1",
        "http://Example.COM",
        "  example.com  ",
        "example.com.",
        "https://example.com:8443/",
    ])
    def test_resolves_to_bare_domain(self, raw):
        assert AuditTarget.from_input(raw).domain == "example.com"

    def test_keeps_other_subdomains(self):
        assert AuditTarget.from_input("blog.example.com").domain == "blog.example.com"

    @pytest.mark.parametrize("raw", ["", "   ", "https://", "http:///path", None])
    def test_unresolvable_input_raises(self, raw):
        with pytest.raises(TargetResolutionError):
            AuditTarget.from_input(raw)

    def test_urls(self):
        target = AuditTarget("example.com")
        assert target.https_url == "https://example.com"
        assert target.http_url == "http://example.com"
        assert target.www_domain == "www.example.com"
        assert str(target) == "example.com"


# ═══════════════════════════════════════════════════════
# CHECK RESULT
# ═══════════════════════════════════════════════════════

class TestCheckResult:

    @pytest.mark.parametrize("status", [CheckStatus.PENDING, CheckStatus.TESTING])
    def test_status_must_be_terminal(self, status):
        with pytest.raises(ValueError):
            CheckResult(check_id=CheckId.ROBOTS, status=status)

    def test_analysis_type_must_match_check(self):
        with pytest.raises(TypeError):
            CheckResult(check_id=CheckId.ROBOTS, status=CheckStatus.SUCCESS, analysis=ImageAnalysis())

    def test_details_become_tuple(self):
        result = CheckResult(
            check_id=CheckId.ROBOTS,
            status=CheckStatus.SUCCESS,
            details=["a", "b"],
            analysis=RobotsAnalysis(),
        )
        assert result.details == ("a", "b")

    def test_failure(self):
        result = CheckResult.failure(CheckId.SSL, "boom")
        assert result.status is CheckStatus.ERROR
        assert result.error == "boom"
        assert result.details == ("❌ boom",)
        assert result.analysis is None

    def test_to_dict(self):
        result = CheckResult(
            check_id=CheckId.IMAGES,
            status=CheckStatus.WARNING,
            details=("x",),
            analysis=ImageAnalysis(total=2, missing_dimensions=("a.png",)),
            duration_ms=12.5,
        )
        data = result.to_dict()
        assert data["check_id"] == "images"
        assert data["status"] == "warning"
        assert data["analysis"]["total"] == 2
        assert data["analysis"]["missing_dimensions"] == ["a.png"]
        assert data["duration_ms"] == 12.5


# ═══════════════════════════════════════════════════════
# AUDIT REPORT
# ═══════════════════════════════════════════════════════

def _report(*statuses: CheckStatus) -> AuditReport:
    ids = list(CheckId)
    results = tuple(
        CheckResult(check_id=ids[i], status=status) for i, status in enumerate(statuses)
    )
    return AuditReport(
        target=AuditTarget("example.com"),
        results=results,
        started_at=FIXED_NOW,
        completed_at=FIXED_NOW + timedelta(seconds=3),
        summary_title="x",
    )


class TestAuditReport:

    def test_overall_status_is_worst(self):
        assert _report(CheckStatus.SUCCESS, CheckStatus.SUCCESS).overall_status is CheckStatus.SUCCESS
        assert _report(CheckStatus.SUCCESS, CheckStatus.WARNING).overall_status is CheckStatus.WARNING
        assert _report(CheckStatus.WARNING, CheckStatus.ERROR).overall_status is CheckStatus.ERROR

    def test_helpers(self):
        report = _report(CheckStatus.SUCCESS, CheckStatus.ERROR, CheckStatus.ERROR)
        assert report.duration_seconds == 3
        assert report.result_for(CheckId.ROBOTS).status is CheckStatus.ERROR
        assert report.result_for(CheckId.IMAGES) is None
        assert report.count_by_status() == {"success": 1, "warning": 0, "error": 2}

    def test_to_dict(self):
        data = _report(CheckStatus.SUCCESS).to_dict()
        assert data["domain"] == "example.com"
        assert data["overall_status"] == "success"
        assert data["started_at"] == FIXED_NOW.isoformat()
        assert len(data["results"]) == 1


# ═══════════════════════════════════════════════════════
# TOPOLOGY MATRIX
# ═══════════════════════════════════════════════════════

def _cell(key, reachable=True, redirected=False, final_url=None):
    return TopologyCell(
        key=key,
        url=f"{key.scheme}://{'www.' if key.www else ''}example.com",
        reachable=reachable,
        redirected=redirected,
        final_url=final_url,
    )


cell_states = st.fixed_dictionaries({
    "reachable": st.booleans(),
    "redirected": st.booleans(),
    "final_url": st.sampled_from([None, "https://example.com/", "https://www.example.com/", "http://example.com/"]),
})


class TestTopologyMatrix:

    def test_requires_four_cells(self):
        with pytest.raises(ValueError):
            TopologyMatrix(cells={TopologyKey.HTTPS_WWW: _cell(TopologyKey.HTTPS_WWW)})

    def test_www_redirects_to_non_www(self):
        matrix = TopologyMatrix(cells={
            TopologyKey.HTTPS_NON_WWW: _cell(TopologyKey.HTTPS_NON_WWW, final_url="https://example.com/"),
            TopologyKey.HTTPS_WWW: _cell(TopologyKey.HTTPS_WWW, redirected=True, final_url="https://example.com/"),
            TopologyKey.HTTP_NON_WWW: _cell(TopologyKey.HTTP_NON_WWW, redirected=True, final_url="https://example.com/"),
            TopologyKey.HTTP_WWW: _cell(TopologyKey.HTTP_WWW, reachable=False),
        })
        assert matrix.https_working
        assert matrix.http_redirects_to_https
        assert matrix.www_redirection is WwwRedirection.TO_NON_WWW
        assert matrix.preferred_url == "https://example.com/"

    def test_both_work_has_no_preferred_url(self):
        matrix = TopologyMatrix(cells={key: _cell(key) for key in TopologyKey})
        assert matrix.www_redirection is WwwRedirection.BOTH_WORK
        assert matrix.preferred_url is None
        assert not matrix.http_redirects_to_https

    def test_to_dict_includes_derived_fields(self):
        matrix = TopologyMatrix(
            cells={key: _cell(key, reachable=False) for key in TopologyKey},
            ip_lookup_note="DNS lookup failed",
        )
        data = matrix.to_dict()
        assert list(data["cells"]) == ["https-non-www", "https-www", "http-non-www", "http-www"]
        assert data["https_working"] is False
        assert data["www_redirection"] == "unclear"
        assert data["ip_lookup_note"] == "DNS lookup failed"

    @settings(max_examples=200)
    @given(st.fixed_dictionaries({key: cell_states for key in TopologyKey}))
    def test_derived_classification_properties(self, states):
        """
        Property: классификация зависит только от ячеек.

        https_working ⇔ хотя бы одна https-ячейка доступна;
        preferred_url задан ⇔ редирект между www и non-www однозначен.
        """
        cells = {key: _cell(key, **state) for key, state in states.items()}
        matrix = TopologyMatrix(cells=cells)
        reversed_matrix = TopologyMatrix(cells=dict(reversed(list(cells.items()))))

        assert matrix.www_redirection is reversed_matrix.www_redirection
        assert matrix.https_working == (
            states[TopologyKey.HTTPS_NON_WWW]["reachable"] or states[TopologyKey.HTTPS_WWW]["reachable"]
        )
        directional = matrix.www_redirection in (WwwRedirection.TO_WWW, WwwRedirection.TO_NON_WWW)
        assert (matrix.preferred_url is not None) == directional
        if matrix.www_redirection is WwwRedirection.BOTH_WORK:
            assert not cells[TopologyKey.HTTPS_WWW].redirected
            assert not cells[TopologyKey.HTTPS_NON_WWW].redirected
