"""
Pytest configuration and fixtures.

Сеть полностью подменяется httpx.MockTransport: тесты не ходят наружу.

Использование:
    pytest tests/ -v
"""

import os
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

# Корень проекта в sys.path (если пакет не установлен)
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from siteaudit.config import AuditConfig  # noqa: E402
from siteaudit.core.context import AuditContext  # noqa: E402
from siteaudit.core.models import AuditTarget  # noqa: E402

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

DOH_ENDPOINT = "https://dns.test/dns-query"
SSL_LABS_ENDPOINT = "https://ssllabs.test/api/v3/analyze"

SECURE_HEADERS = {
    "strict-transport-security": "max-age=31536000",
    "content-security-policy": "default-src 'self'",
    "x-frame-options": "DENY",
    "x-content-type-options": "nosniff",
}

HOME_HTML = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Example Corp - Widgets and Gadgets for Everyone</title>
  <meta name="description" content="Example Corp builds reliable widgets and gadgets for teams of every size. Browse the catalogue, compare plans and order online today.">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <link rel="canonical" href="https://example.com/">
  <link href="https://fonts.googleapis.com/css2?family=Open+Sans&display=swap" rel="stylesheet">
</head>
<body>
  <img src="/img/logo.png" alt="Example logo" width="120" height="40">
  <footer>
    <a href="https://twitter.com/example" target="_blank" rel="noopener">Twitter</a>
    <p>© 2025 Example Corp. All rights reserved.</p>
  </footer>
</body>
</html>
"""

ROBOTS_TXT = """User-agent: *
Disallow: /admin
Allow: /admin/public
Sitemap: https://example.com/sitemap.xml
"""


def fixed_clock() -> datetime:
    return FIXED_NOW


def _route_key(url: Union[str, httpx.URL]) -> str:
    parsed = httpx.URL(url) if isinstance(url, str) else url
    return f"{parsed.scheme}://{parsed.host}{parsed.path}"


class SiteStub:
    """
    Маршрутизатор для MockTransport.

    Неизвестный URL → httpx.ConnectError (хост недоступен).
    """

    def __init__(self):
        self.routes: Dict[Tuple[Optional[str], str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        url: str,
        status: int = 200,
        text: str = "",
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        method: Optional[str] = None,
    ) -> "SiteStub":
        def respond(request: httpx.Request) -> httpx.Response:
            if json is not None:
                return httpx.Response(status, json=json, headers=headers)
            return httpx.Response(status, text=text, headers=headers)

        self.routes[(method, _route_key(url))] = respond
        return self

    def redirect(self, url: str, location: str, status: int = 301) -> "SiteStub":
        self.routes[(None, _route_key(url))] = lambda request: httpx.Response(
            status, headers={"Location": location}
        )
        return self

    def fail(self, url: str, method: Optional[str] = None, exc: type = httpx.ConnectError) -> "SiteStub":
        def raise_error(request: httpx.Request) -> httpx.Response:
            raise exc("Connection refused", request=request)

        self.routes[(method, _route_key(url))] = raise_error
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = _route_key(request.url)
        route = self.routes.get((request.method, key)) or self.routes.get((None, key))
        if route is None:
            raise httpx.ConnectError(f"No route to {key}", request=request)
        return route(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requested(self, url: str, method: Optional[str] = None) -> int:
        key = _route_key(url)
        return sum(
            1 for r in self.requests
            if _route_key(r.url) == key and (method is None or r.method == method)
        )


def healthy_site(
    stub: Optional[SiteStub] = None,
    domain: str = "example.com",
    html: str = HOME_HTML,
    headers: Optional[Dict[str, str]] = None,
) -> SiteStub:
    """Сайт: https без www канонический, остальные варианты редиректят туда."""
    stub = stub or SiteStub()
    canonical = f"https://{domain}/"
    page_headers = {"content-type": "text/html; charset=utf-8"}
    page_headers.update(SECURE_HEADERS if headers is None else headers)

    stub.add(f"https://{domain}", text=html, headers=page_headers)
    stub.redirect(f"https://www.{domain}", canonical)
    stub.redirect(f"http://{domain}", canonical)
    stub.redirect(f"http://www.{domain}", canonical)
    stub.add(f"https://{domain}/robots.txt", text=ROBOTS_TXT, headers={"content-type": "text/plain"})
    stub.add(DOH_ENDPOINT, json={"Status": 0, "Answer": [{"name": domain, "type": 1, "data": "93.184.216.34"}]})
    return stub


def make_config(tmp_path=None, **overrides) -> AuditConfig:
    values = dict(
        request_timeout_seconds=5,
        checker_timeout_seconds=5,
        doh_endpoint=DOH_ENDPOINT,
        ssl_labs_endpoint=SSL_LABS_ENDPOINT,
        use_ssl_labs=False,
        concurrent=False,
        retry_attempts=1,
    )
    if tmp_path is not None:
        values["report_output_dir"] = tmp_path / "reports"
    values.update(overrides)
    return AuditConfig(**values)


def make_context(stub: SiteStub, domain: str = "example.com", **overrides) -> AuditContext:
    """Контекст без async with: клиент закрывается сборщиком мусора в тестах."""
    config = make_config(**overrides)
    client = httpx.AsyncClient(transport=stub.transport, timeout=5)
    return AuditContext(target=AuditTarget(domain), config=config, client=client, clock=fixed_clock)


# ═══════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════

@pytest.fixture
def site():
    """Пустой стаб сайта."""
    return SiteStub()


@pytest.fixture
def config(tmp_path):
    """Тестовая конфигурация (без SSL Labs, без ретраев)."""
    return make_config(tmp_path)


# ═══════════════════════════════════════════════════════
# MARKERS
# ═══════════════════════════════════════════════════════

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "slow: mark test as slow"
    )
