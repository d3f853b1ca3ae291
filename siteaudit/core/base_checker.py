"""
Base class for audit checkers.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

from .context import AuditContext
from .models import AnalysisPayload, CheckId, CheckResult, CheckStatus

logger = logging.getLogger(__name__)


class BaseChecker(ABC):
    """
    Базовый класс для всех проверок сайта.

    Предоставляет:
    - Шаблон метода run()
    - Error handling (любой сбой превращается в error-результат)
    - Timeout support
    - Логирование
    """

    check_id: CheckId
    name: str = "checker"

    def __init__(self, context: AuditContext, timeout_seconds: Optional[float] = None):
        """
        Args:
            context: Контекст текущего запуска
            timeout_seconds: Таймаут выполнения (по умолчанию из конфигурации)
        """
        self.context = context
        self.timeout_seconds = timeout_seconds or context.config.checker_timeout_seconds
        self.logger = logging.getLogger(f"siteaudit.{self.name}")

    @property
    def target(self):
        return self.context.target

    @property
    def client(self):
        return self.context.client

    async def run(self) -> CheckResult:
        """
        Запустить проверку с error handling и timeout.

        Returns:
            CheckResult с терминальным статусом
        """
        self.logger.info(f"Starting {self.name} for {self.target.domain}...")
        start_time = time.perf_counter()

        try:
            result = await asyncio.wait_for(self._check(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.error(f"{self.name} timed out after {self.timeout_seconds}s")
            return CheckResult.failure(
                self.check_id,
                f"Check timed out after {self.timeout_seconds:g}s",
                duration_ms=duration_ms,
            )
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.error(f"{self.name} failed with exception: {e}", exc_info=True)
            message = f"{type(e).__name__}: {e}"
            return CheckResult.failure(
                self.check_id,
                message,
                details=self._failure_details(message),
                duration_ms=duration_ms,
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"Completed {self.name}: "
            f"status={result.status.value}, "
            f"duration={duration_ms:.2f}ms"
        )
        return CheckResult(
            check_id=result.check_id,
            status=result.status,
            details=result.details,
            analysis=result.analysis,
            error=result.error,
            duration_ms=duration_ms,
        )

    @abstractmethod
    async def _check(self) -> CheckResult:
        """
        Выполнить проверку (должен быть реализован в подклассах).

        Returns:
            CheckResult без duration_ms (его проставляет run())
        """
        pass

    def result(
        self,
        status: CheckStatus,
        details: Iterable[str],
        analysis: Optional[AnalysisPayload] = None,
        error: Optional[str] = None,
    ) -> CheckResult:
        """Удобный метод для создания CheckResult этой проверки."""
        return CheckResult(
            check_id=self.check_id,
            status=status,
            details=tuple(details),
            analysis=analysis,
            error=error,
        )

    def _failure_details(self, message: str) -> Tuple[str, ...]:
        """Строки отчёта при неожиданном сбое. Подклассы могут переопределить."""
        return (f"❌ {self.name} failed: {message}",)
