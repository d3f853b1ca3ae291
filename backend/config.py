"""Конфигурация приложения."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from siteaudit.config import DEFAULT_USER_AGENT, AuditConfig


class Settings(BaseSettings):
    """Настройки приложения (переменные окружения SITEAUDIT_*)."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SITEAUDIT_", extra="ignore")

    # HTTP
    request_timeout: float = 15.0
    user_agent: str = DEFAULT_USER_AGENT
    verify_tls: bool = True

    # Внешние сервисы
    doh_endpoint: str = "https://cloudflare-dns.com/dns-query"
    ssl_labs_endpoint: str = "https://api.ssllabs.com/api/v3/analyze"
    use_ssl_labs: bool = True

    # Выполнение
    checker_timeout: float = 60.0
    concurrent: bool = False
    retry_attempts: int = 2

    # Отчёты
    report_dir: str = "audit_reports"

    def to_audit_config(self) -> AuditConfig:
        return AuditConfig(
            request_timeout_seconds=self.request_timeout,
            user_agent=self.user_agent,
            verify_tls=self.verify_tls,
            doh_endpoint=self.doh_endpoint,
            ssl_labs_endpoint=self.ssl_labs_endpoint,
            use_ssl_labs=self.use_ssl_labs,
            checker_timeout_seconds=self.checker_timeout,
            concurrent=self.concurrent,
            retry_attempts=self.retry_attempts,
            report_output_dir=Path(self.report_dir),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
