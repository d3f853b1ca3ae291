"""
Per-run audit context.

Контекст создаётся на каждый запуск аудита и закрывается в конце:
цель, конфигурация, общий HTTP-клиент, часы и кеш загруженных страниц.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, Optional, Union

import httpx

from siteaudit.config import AuditConfig
from .errors import FetchError
from .http import TRANSPORT_ERRORS, build_client, describe_error
from .models import AuditTarget

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PageSnapshot:
    """Загруженная страница (тело + заголовки)."""
    url: str
    final_url: str
    status_code: int
    text: str
    headers: Dict[str, str]


@dataclass
class AuditContext:
    """Всё, что нужно checker'ам в рамках одного запуска."""

    target: AuditTarget
    config: AuditConfig
    client: httpx.AsyncClient
    clock: Callable[[], datetime] = utc_now
    _pages: Dict[str, Union[PageSnapshot, FetchError]] = field(default_factory=dict, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def now(self) -> datetime:
        return self.clock()

    async def fetch_page(self, url: Optional[str] = None) -> PageSnapshot:
        """
        GET страницы с кешированием в рамках запуска.

        Домашняя страница нужна нескольким проверкам (analytics, meta,
        content, images); загружаем её один раз. Ошибка тоже кешируется.

        Raises:
            FetchError: сетевой сбой или не-2xx ответ
        """
        url = url or self.target.https_url
        async with self._lock:
            cached = self._pages.get(url)
            if cached is None:
                cached = await self._load(url)
                self._pages[url] = cached

        if isinstance(cached, FetchError):
            raise cached
        return cached

    async def _load(self, url: str) -> Union[PageSnapshot, FetchError]:
        logger.debug(f"Fetching {url}")
        try:
            response = await self.client.get(url, follow_redirects=True)
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Fetch of {url} failed: {describe_error(e)}")
            return FetchError(url, describe_error(e))

        if not response.is_success:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
            logger.warning(f"Fetch of {url} returned {message}")
            return FetchError(url, message, status_code=response.status_code)

        return PageSnapshot(
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        target: AuditTarget,
        config: AuditConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> AsyncIterator["AuditContext"]:
        """Создать контекст с собственным клиентом; клиент закрывается на выходе."""
        client = build_client(config, transport=transport)
        try:
            yield cls(target=target, config=config, client=client, clock=clock or utc_now)
        finally:
            await client.aclose()
