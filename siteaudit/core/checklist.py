"""
Per-run checklist state machine.

Каждый пункт проходит pending → testing → {success, warning, error}.
Заголовок чеклиста пересчитывается после каждого перехода.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from .errors import InvalidTransitionError
from .models import CheckDescriptor, CheckId, CheckStatus

TITLE_RUNNING = "Running Checks..."
TITLE_ISSUES = "Checks Complete (Some Issues Found)"
TITLE_WARNINGS = "Checks Complete (Warnings Found)"
TITLE_ALL_GOOD = "All Checks Complete"


@dataclass
class ChecklistItem:
    """Один пункт чеклиста."""
    check_id: CheckId
    label: str
    status: CheckStatus = CheckStatus.PENDING


@dataclass(frozen=True)
class ProgressEvent:
    """Событие прогресса, отправляемое слушателю."""
    index: int
    check_id: CheckId
    label: str
    status: CheckStatus
    title: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "check_id": self.check_id.value,
            "label": self.label,
            "status": self.status.value,
            "title": self.title,
        }


class Checklist:
    """Упорядоченный список включённых проверок и их состояний."""

    def __init__(self, descriptors: Sequence[CheckDescriptor]):
        self.items: List[ChecklistItem] = [
            ChecklistItem(check_id=d.check_id, label=d.label)
            for d in descriptors
            if d.enabled
        ]
        self.title = self._compute_title()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def index_of(self, check_id: CheckId) -> int:
        for i, item in enumerate(self.items):
            if item.check_id == check_id:
                return i
        raise KeyError(check_id)

    def status_of(self, check_id: CheckId) -> CheckStatus:
        return self.items[self.index_of(check_id)].status

    def start(self, check_id: CheckId) -> ProgressEvent:
        """pending → testing."""
        index = self.index_of(check_id)
        item = self.items[index]
        if item.status is not CheckStatus.PENDING:
            raise InvalidTransitionError(
                f"{check_id.value}: cannot start from {item.status.value}"
            )
        item.status = CheckStatus.TESTING
        return self._event(index)

    def finish(self, check_id: CheckId, status: CheckStatus) -> ProgressEvent:
        """testing → terminal."""
        if not status.is_terminal:
            raise InvalidTransitionError(f"{check_id.value}: {status.value} is not a terminal status")
        index = self.index_of(check_id)
        item = self.items[index]
        if item.status is not CheckStatus.TESTING:
            raise InvalidTransitionError(
                f"{check_id.value}: cannot finish from {item.status.value}"
            )
        item.status = status
        return self._event(index)

    @property
    def complete(self) -> bool:
        return all(item.status.is_terminal for item in self.items)

    def _event(self, index: int) -> ProgressEvent:
        self.title = self._compute_title()
        item = self.items[index]
        return ProgressEvent(
            index=index,
            check_id=item.check_id,
            label=item.label,
            status=item.status,
            title=self.title,
        )

    def _compute_title(self) -> str:
        statuses = [item.status for item in self.items]
        if not all(s.is_terminal for s in statuses):
            return TITLE_RUNNING
        if CheckStatus.ERROR in statuses:
            return TITLE_ISSUES
        if CheckStatus.WARNING in statuses:
            return TITLE_WARNINGS
        return TITLE_ALL_GOOD
