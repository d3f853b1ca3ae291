"""
Shared HTTP client construction.
"""

from typing import Optional

import httpx

from siteaudit.config import AuditConfig

# Всё, что считается сетевым сбоем (а не ошибкой в коде checker'а)
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def build_client(
    config: AuditConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Создать AsyncClient с единым таймаутом и User-Agent."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.request_timeout_seconds),
        headers={"User-Agent": config.user_agent},
        verify=config.verify_tls,
        transport=transport,
    )


def describe_error(exc: BaseException) -> str:
    """Короткое описание исключения для строк отчёта."""
    text = str(exc).strip()
    return text or type(exc).__name__
