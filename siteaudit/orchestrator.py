"""
Audit orchestrator.

Features:
- Ordered execution of enabled checks (topology is always first)
- Checklist state machine with progress events
- Failure isolation: a checker fault never aborts the run
- Optional concurrent mode with ordered progress reporting
- Per-run context and resource cleanup
"""

import asyncio
import inspect
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

import httpx

from siteaudit.checkers import (
    AnalyticsChecker,
    ContentChecker,
    ImageChecker,
    MetaChecker,
    RobotsChecker,
    SSLChecker,
    TopologyChecker,
)
from siteaudit.config import AuditConfig
from siteaudit.core.base_checker import BaseChecker
from siteaudit.core.checklist import Checklist, ProgressEvent
from siteaudit.core.context import AuditContext
from siteaudit.core.models import (
    AuditReport,
    AuditTarget,
    CheckDescriptor,
    CheckId,
    CheckResult,
)

logger = logging.getLogger(__name__)

CheckerFactory = Callable[[AuditContext], BaseChecker]
ProgressListener = Callable[[ProgressEvent], Union[None, Awaitable[None]]]

# Порядок объявления = порядок выполнения и отображения
CHECK_ORDER: Tuple[CheckId, ...] = (
    CheckId.TOPOLOGY,
    CheckId.ROBOTS,
    CheckId.ANALYTICS,
    CheckId.SSL,
    CheckId.META,
    CheckId.CONTENT,
    CheckId.IMAGES,
)

CHECK_LABELS: Dict[CheckId, str] = {
    CheckId.TOPOLOGY: "HTTPS/HTTP Security Analysis",
    CheckId.ROBOTS: "Robots.txt Analysis",
    CheckId.ANALYTICS: "Analytics & Tracking",
    CheckId.SSL: "SSL & Security Headers",
    CheckId.META: "Meta Tags & SEO",
    CheckId.CONTENT: "Content and Style",
    CheckId.IMAGES: "Image Optimization & Accessibility",
}

DEFAULT_CHECKERS: Dict[CheckId, CheckerFactory] = {
    CheckId.TOPOLOGY: TopologyChecker,
    CheckId.ROBOTS: RobotsChecker,
    CheckId.ANALYTICS: AnalyticsChecker,
    CheckId.SSL: SSLChecker,
    CheckId.META: MetaChecker,
    CheckId.CONTENT: ContentChecker,
    CheckId.IMAGES: ImageChecker,
}


def parse_check_ids(values: Iterable[Union[str, CheckId]]) -> List[CheckId]:
    """
    Raises:
        ValueError: неизвестный идентификатор проверки
    """
    parsed = []
    for value in values:
        if isinstance(value, CheckId):
            parsed.append(value)
            continue
        try:
            parsed.append(CheckId(str(value).strip().lower()))
        except ValueError:
            known = ", ".join(c.value for c in CHECK_ORDER)
            raise ValueError(f"Unknown check '{value}'. Known checks: {known}") from None
    return parsed


def build_descriptors(enabled_checks: Optional[Iterable[Union[str, CheckId]]] = None) -> List[CheckDescriptor]:
    """
    Упорядоченный список проверок.

    Args:
        enabled_checks: Включённые проверки (None = все). Topology включена всегда.
    """
    if enabled_checks is None:
        enabled = set(CHECK_ORDER)
    else:
        enabled = set(parse_check_ids(enabled_checks))
    enabled.add(CheckId.TOPOLOGY)

    return [
        CheckDescriptor(check_id=check_id, label=CHECK_LABELS[check_id], enabled=check_id in enabled)
        for check_id in CHECK_ORDER
    ]


class AuditOrchestrator:
    """Оркестратор для управления выполнением аудита."""

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        checkers: Optional[Dict[CheckId, CheckerFactory]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            config: Конфигурация аудита
            checkers: Замена фабрик checker'ов (по CheckId)
            transport: Транспорт httpx (в тестах MockTransport)
            clock: Источник текущего времени
        """
        self.config = config or AuditConfig()
        self.checkers: Dict[CheckId, CheckerFactory] = dict(DEFAULT_CHECKERS)
        if checkers:
            self.checkers.update(checkers)
        self.transport = transport
        self.clock = clock

    async def run_audit(
        self,
        target: Union[AuditTarget, str],
        enabled_checks: Optional[Iterable[Union[str, CheckId]]] = None,
        listener: Optional[ProgressListener] = None,
    ) -> AuditReport:
        """
        Запустить аудит одного домена.

        Raises:
            TargetResolutionError: домен не удалось определить (до запуска проверок)
        """
        if not isinstance(target, AuditTarget):
            target = AuditTarget.from_input(target)

        descriptors = build_descriptors(enabled_checks)
        checklist = Checklist(descriptors)
        mode = "concurrent" if self.config.concurrent else "sequential"
        logger.info(f"Starting audit of {target.domain}: {len(checklist)} checks ({mode})")

        async with AuditContext.open(target, self.config, transport=self.transport, clock=self.clock) as context:
            started_at = context.now()
            if self.config.concurrent:
                results = await self._run_concurrent(checklist, context, listener)
            else:
                results = await self._run_sequential(checklist, context, listener)
            completed_at = context.now()

        report = AuditReport(
            target=target,
            results=tuple(results),
            started_at=started_at,
            completed_at=completed_at,
            summary_title=checklist.title,
            metadata={
                "mode": mode,
                "enabled_checks": [item.check_id.value for item in checklist],
            },
        )
        logger.info(f"Audit of {target.domain} complete: {report.summary_title}")
        return report

    async def _run_sequential(
        self,
        checklist: Checklist,
        context: AuditContext,
        listener: Optional[ProgressListener],
    ) -> List[CheckResult]:
        results = []
        for i, item in enumerate(checklist, 1):
            logger.info(f"[{i}/{len(checklist)}] Running {item.check_id.value}...")
            await self._emit(listener, checklist.start(item.check_id))
            result = await self._invoke(item.check_id, context)
            results.append(result)
            await self._emit(listener, checklist.finish(item.check_id, result.status))
        return results

    async def _run_concurrent(
        self,
        checklist: Checklist,
        context: AuditContext,
        listener: Optional[ProgressListener],
    ) -> List[CheckResult]:
        # Все проверки стартуют сразу; события отдаются в порядке объявления,
        # завершения буферизуются до отчёта предшественников
        tasks = {
            item.check_id: asyncio.create_task(self._invoke(item.check_id, context))
            for item in checklist
        }
        results = []
        try:
            for item in checklist:
                await self._emit(listener, checklist.start(item.check_id))
                result = await tasks[item.check_id]
                results.append(result)
                await self._emit(listener, checklist.finish(item.check_id, result.status))
        finally:
            for task in tasks.values():
                if not task.done():
                    task.cancel()
        return results

    async def _invoke(self, check_id: CheckId, context: AuditContext) -> CheckResult:
        """Вызов checker'а; любая ошибка превращается в error-результат."""
        try:
            checker = self.checkers[check_id](context)
            result = await checker.run()
            if not isinstance(result, CheckResult):
                raise TypeError(f"Checker returned {type(result).__name__}, expected CheckResult")
            return result
        except Exception as e:
            logger.error(f"Checker {check_id.value} failed: {e}", exc_info=True)
            return CheckResult.failure(check_id, f"{type(e).__name__}: {e}")

    async def _emit(self, listener: Optional[ProgressListener], event: ProgressEvent) -> None:
        if listener is None:
            return
        try:
            outcome = listener(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"Progress listener failed on {event.check_id.value}: {e}", exc_info=True)


async def run_audit(
    domain: Union[AuditTarget, str],
    enabled_checks: Optional[Iterable[Union[str, CheckId]]] = None,
    config: Optional[AuditConfig] = None,
    listener: Optional[ProgressListener] = None,
) -> AuditReport:
    """Удобная функция: один аудит с конфигурацией по умолчанию."""
    return await AuditOrchestrator(config).run_audit(domain, enabled_checks, listener=listener)
