"""
Tests для матрицы topology (scheme × www), CDN и DoH.
"""

import asyncio

import httpx
import pytest

from siteaudit.checkers.topology import (
    DNS_LOOKUP_FAILED,
    LIMITED_REDIRECT_NOTE,
    UNRESOLVED_IP,
    TopologyChecker,
    has_cdn_headers,
    ip_in_cdn_range,
)
from siteaudit.core.analysis import TopologyKey, WwwRedirection
from siteaudit.core.context import AuditContext
from siteaudit.core.models import AuditTarget, CheckStatus

from conftest import DOH_ENDPOINT, SiteStub, fixed_clock, healthy_site, make_config, make_context


class TestCdnDetection:

    @pytest.mark.parametrize("headers", [
        {"CF-Ray": "abc"},
        {"cf-cache-status": "HIT"},
        {"Server": "cloudflare"},
    ])
    def test_headers(self, headers):
        assert has_cdn_headers(headers)

    def test_no_cdn_headers(self):
        assert not has_cdn_headers({"server": "nginx", "cf-ray": ""})

    @pytest.mark.parametrize("ip,expected", [
        ("104.16.1.1", True),
        ("104.160.1.1", False),
        ("162.158.0.9", True),
        ("173.245.48.1", True),
        ("173.245.49.1", False),
        ("93.184.216.34", False),
        (None, False),
    ])
    def test_ip_prefix_matches_whole_octets(self, ip, expected):
        assert ip_in_cdn_range(ip) is expected


class TestTopologyChecker:

    @pytest.mark.asyncio
    async def test_healthy_site(self):
        site = healthy_site()
        result = await TopologyChecker(make_context(site)).run()
        matrix = result.analysis

        assert result.status is CheckStatus.SUCCESS
        assert matrix.https_working
        assert matrix.http_redirects_to_https
        assert matrix.www_redirection is WwwRedirection.TO_NON_WWW
        assert matrix.ip_address == "93.184.216.34"
        assert not matrix.cdn_detected
        assert result.details[0] == "🌐 Server IP: 93.184.216.34"
        assert "✅ HTTP properly redirects to HTTPS" in result.details
        assert result.details[-1] == "🔒 Excellent: HTTPS working and HTTP redirects properly"

    @pytest.mark.asyncio
    async def test_probe_order_is_canonical(self):
        site = healthy_site()
        await TopologyChecker(make_context(site)).run()

        origins = list(dict.fromkeys(
            f"{r.url.scheme}://{r.url.host}" for r in site.requests if r.method == "HEAD"
        ))
        assert origins == [
            "https://example.com",
            "https://www.example.com",
            "http://example.com",
            "http://www.example.com",
        ]

    @pytest.mark.asyncio
    async def test_https_only_without_redirect_is_warning(self, site):
        site.add("https://example.com", text="ok")
        site.add("http://example.com", text="ok")
        site.add(DOH_ENDPOINT, json={"Answer": [{"type": 1, "data": "93.184.216.34"}]})
        result = await TopologyChecker(make_context(site)).run()

        assert result.status is CheckStatus.WARNING
        assert "⚠️ HTTP does not redirect to HTTPS (security risk)" in result.details
        assert not result.analysis.cell(TopologyKey.HTTPS_WWW).reachable

    @pytest.mark.asyncio
    async def test_nothing_reachable_is_error(self, site):
        result = await TopologyChecker(make_context(site)).run()
        matrix = result.analysis

        assert result.status is CheckStatus.ERROR
        assert not matrix.https_working
        assert all(not cell.reachable for cell in matrix.cells.values())
        assert all(cell.error for cell in matrix.cells.values())
        assert matrix.ip_lookup_note == DNS_LOOKUP_FAILED
        assert result.details[0] == f"🌐 Server IP: {DNS_LOOKUP_FAILED}"

    @pytest.mark.asyncio
    async def test_reduced_fidelity_probe(self, site):
        healthy_site(site)
        site.fail("https://example.com", method="HEAD")
        site.add("https://example.com", text="ok", method="GET")
        result = await TopologyChecker(make_context(site)).run()
        cell = result.analysis.cell(TopologyKey.HTTPS_NON_WWW)

        assert cell.reachable
        assert not cell.redirected
        assert cell.final_url == "https://example.com"
        assert cell.note == LIMITED_REDIRECT_NOTE

    @pytest.mark.asyncio
    async def test_cdn_by_header(self, site):
        healthy_site(site, headers={"cf-ray": "8a1b2c"})
        result = await TopologyChecker(make_context(site)).run()

        assert result.analysis.cdn_by_header
        assert result.details[0] == "🌐 Server IP: 93.184.216.34 (Protected by Cloudflare)"

    @pytest.mark.asyncio
    async def test_cdn_by_ip(self, site):
        healthy_site(site)
        site.add(DOH_ENDPOINT, json={"Answer": [{"type": 5, "data": "alias.example.net."},
                                                 {"type": 1, "data": "104.16.132.229"}]})
        result = await TopologyChecker(make_context(site)).run()

        assert result.analysis.ip_address == "104.16.132.229"
        assert result.analysis.cdn_by_ip

    @pytest.mark.asyncio
    async def test_unresolved_domain(self, site):
        healthy_site(site)
        site.add(DOH_ENDPOINT, json={"Status": 3})
        result = await TopologyChecker(make_context(site)).run()

        assert result.analysis.ip_address is None
        assert result.analysis.ip_lookup_note == UNRESOLVED_IP
        assert result.status is CheckStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_doh_retried(self):
        site = healthy_site(SiteStub())
        calls = []

        def flaky(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json={"Answer": [{"type": 1, "data": "1.2.3.4"}]})

        site.routes[(None, "https://dns.test/dns-query")] = flaky
        checker = TopologyChecker(make_context(site, retry_attempts=2))
        ip, note = await checker.lookup_ip()

        assert (ip, note) == ("1.2.3.4", None)
        assert len(calls) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"Answer": "x"},
        {"Answer": [None, "93.184.216.34"]},
        {"Answer": {"type": 1, "data": "93.184.216.34"}},
    ])
    async def test_odd_doh_reply_is_unresolved(self, payload):
        site = healthy_site(SiteStub())
        site.add(DOH_ENDPOINT, json=payload)
        result = await TopologyChecker(make_context(site)).run()

        assert result.status is CheckStatus.SUCCESS
        assert result.analysis.ip_lookup_note == UNRESOLVED_IP

    @pytest.mark.asyncio
    async def test_doh_skips_non_record_entries(self):
        site = healthy_site(SiteStub())
        site.add(DOH_ENDPOINT, json={"Answer": [None, {"type": 1, "data": "1.2.3.4"}]})
        ip, note = await TopologyChecker(make_context(site)).lookup_ip()
        assert (ip, note) == ("1.2.3.4", None)


class TestSilentSite:

    @pytest.mark.asyncio
    async def test_matrix_survives_when_nothing_answers(self):
        async def never_answers(request):
            await asyncio.sleep(30)
            raise httpx.ConnectTimeout("timed out", request=request)

        config = make_config(request_timeout_seconds=0.25, checker_timeout_seconds=1.0)
        client = httpx.AsyncClient(transport=httpx.MockTransport(never_answers))
        context = AuditContext(target=AuditTarget("example.com"), config=config, client=client, clock=fixed_clock)

        result = await TopologyChecker(context).run()
        matrix = result.analysis

        assert result.status is CheckStatus.ERROR
        assert matrix is not None
        assert len(matrix.cells) == 4
        assert all(not cell.reachable for cell in matrix.cells.values())
        assert all(cell.error == "Timed out after 0.5s" for cell in matrix.cells.values())
        assert matrix.ip_lookup_note == DNS_LOOKUP_FAILED
        await client.aclose()

    def test_probe_budget_fits_inside_checker_budget(self):
        context = make_context(SiteStub(), request_timeout_seconds=15, checker_timeout_seconds=60)
        assert TopologyChecker(context).probe_timeout == 30
        context = make_context(SiteStub(), request_timeout_seconds=40, checker_timeout_seconds=60)
        assert TopologyChecker(context).probe_timeout == 30
