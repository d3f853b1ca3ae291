"""
Exception hierarchy for the site audit engine.
"""

from typing import Optional


class SiteAuditError(Exception):
    """Базовое исключение аудита."""


class TargetResolutionError(SiteAuditError):
    """Не удалось получить домен для аудита. Единственная ошибка, прерывающая весь запуск."""


class InvalidTransitionError(SiteAuditError):
    """Недопустимый переход состояния пункта чеклиста."""


class FetchError(SiteAuditError):
    """Сетевой сбой или не-2xx ответ при загрузке ресурса."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.message = message
        self.status_code = status_code
