"""
Core data models for the site audit engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

from .analysis import (
    AnalyticsReport,
    ContentAnalysis,
    ImageAnalysis,
    MetaAnalysis,
    RobotsAnalysis,
    SSLAnalysis,
    TopologyKey,
    TopologyMatrix,
    WwwRedirection,
    to_plain,
)
from .errors import TargetResolutionError

__all__ = [
    "AuditReport",
    "AuditTarget",
    "CheckDescriptor",
    "CheckId",
    "CheckResult",
    "CheckStatus",
    "TopologyKey",
    "WwwRedirection",
]


class CheckId(str, Enum):
    """Идентификатор проверки."""
    TOPOLOGY = "topology"
    ROBOTS = "robots"
    ANALYTICS = "analytics"
    SSL = "ssl"
    META = "meta"
    CONTENT = "content"
    IMAGES = "images"


class CheckStatus(str, Enum):
    """Состояние пункта чеклиста / итог проверки."""
    PENDING = "pending"    # Ещё не запускалась
    TESTING = "testing"    # Выполняется
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (CheckStatus.SUCCESS, CheckStatus.WARNING, CheckStatus.ERROR)


AnalysisPayload = Union[
    TopologyMatrix,
    RobotsAnalysis,
    AnalyticsReport,
    SSLAnalysis,
    MetaAnalysis,
    ContentAnalysis,
    ImageAnalysis,
]

# Какой payload допустим для какой проверки
ANALYSIS_TYPES: Dict[CheckId, type] = {
    CheckId.TOPOLOGY: TopologyMatrix,
    CheckId.ROBOTS: RobotsAnalysis,
    CheckId.ANALYTICS: AnalyticsReport,
    CheckId.SSL: SSLAnalysis,
    CheckId.META: MetaAnalysis,
    CheckId.CONTENT: ContentAnalysis,
    CheckId.IMAGES: ImageAnalysis,
}


@dataclass(frozen=True)
class AuditTarget:
    """Домен, который аудируется. Хранится без схемы и без префикса www."""

    domain: str

    @classmethod
    def from_input(cls, raw: str) -> "AuditTarget":
        """
        Получить домен из пользовательского ввода (голый хост или URL).

        Raises:
            TargetResolutionError: если хост извлечь не удалось
        """
        text = (raw or "").strip()
        if not text:
            raise TargetResolutionError("No domain given")

        candidate = text if "://" in text else f"http://{text}"
        try:
            hostname = urlparse(candidate).hostname
        except ValueError as e:
            raise TargetResolutionError(f"Could not parse target '{raw}': {e}") from e

        if not hostname:
            raise TargetResolutionError(f"Could not determine hostname from '{raw}'")

        hostname = hostname.lower().rstrip(".")
        if hostname.startswith("www."):
            hostname = hostname[4:]
        if not hostname or " " in hostname:
            raise TargetResolutionError(f"Could not determine hostname from '{raw}'")

        return cls(domain=hostname)

    @property
    def www_domain(self) -> str:
        return f"www.{self.domain}"

    @property
    def https_url(self) -> str:
        return f"https://{self.domain}"

    @property
    def http_url(self) -> str:
        return f"http://{self.domain}"

    def __str__(self) -> str:
        return self.domain


@dataclass(frozen=True)
class CheckDescriptor:
    """Описание проверки в декларированном порядке."""
    check_id: CheckId
    label: str
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"check_id": self.check_id.value, "label": self.label, "enabled": self.enabled}


@dataclass(frozen=True)
class CheckResult:
    """Результат одной проверки. Статус всегда терминальный."""

    check_id: CheckId
    status: CheckStatus
    details: Tuple[str, ...] = ()
    analysis: Optional[AnalysisPayload] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    def __post_init__(self):
        if not self.status.is_terminal:
            raise ValueError(f"CheckResult status must be terminal, got {self.status.value}")
        if self.analysis is not None:
            expected = ANALYSIS_TYPES[self.check_id]
            if not isinstance(self.analysis, expected):
                raise TypeError(
                    f"{self.check_id.value} result expects {expected.__name__}, "
                    f"got {type(self.analysis).__name__}"
                )
        # Списки приводим к tuple, чтобы результат был неизменяемым
        object.__setattr__(self, "details", tuple(self.details))

    @classmethod
    def failure(
        cls,
        check_id: CheckId,
        message: str,
        details: Tuple[str, ...] = (),
        duration_ms: float = 0.0,
    ) -> "CheckResult":
        """Результат-ошибка: checker упал, истёк таймаут или ресурс недоступен."""
        return cls(
            check_id=check_id,
            status=CheckStatus.ERROR,
            details=tuple(details) or (f"❌ {message}",),
            error=message,
            duration_ms=duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        return {
            "check_id": self.check_id.value,
            "status": self.status.value,
            "details": list(self.details),
            "analysis": self.analysis.to_dict() if self.analysis is not None else None,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class AuditReport:
    """Итоговый отчёт аудита одного домена."""

    target: AuditTarget
    results: Tuple[CheckResult, ...]
    started_at: datetime
    completed_at: datetime
    summary_title: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def overall_status(self) -> CheckStatus:
        statuses = {r.status for r in self.results}
        if CheckStatus.ERROR in statuses:
            return CheckStatus.ERROR
        if CheckStatus.WARNING in statuses:
            return CheckStatus.WARNING
        return CheckStatus.SUCCESS

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def result_for(self, check_id: CheckId) -> Optional[CheckResult]:
        for result in self.results:
            if result.check_id == check_id:
                return result
        return None

    def count_by_status(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in (CheckStatus.SUCCESS, CheckStatus.WARNING, CheckStatus.ERROR)}
        for result in self.results:
            counts[result.status.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        return {
            "domain": self.target.domain,
            "summary_title": self.summary_title,
            "overall_status": self.overall_status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "counts": self.count_by_status(),
            "results": [r.to_dict() for r in self.results],
            "metadata": to_plain(self.metadata),
        }
