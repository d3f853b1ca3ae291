"""
Configuration for the site audit engine.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; SiteAudit/1.0; +https://github.com/siteaudit/siteaudit)"
)


@dataclass
class AuditConfig:
    """Конфигурация аудита."""

    # === HTTP ===
    request_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("SITEAUDIT_REQUEST_TIMEOUT", "15"))
    )
    user_agent: str = field(default_factory=lambda: os.getenv("SITEAUDIT_USER_AGENT", DEFAULT_USER_AGENT))
    verify_tls: bool = field(default_factory=lambda: _env_bool("SITEAUDIT_VERIFY_TLS", True))

    # === External services ===
    doh_endpoint: str = field(
        default_factory=lambda: os.getenv("SITEAUDIT_DOH_ENDPOINT", "https://cloudflare-dns.com/dns-query")
    )
    ssl_labs_endpoint: str = field(
        default_factory=lambda: os.getenv("SITEAUDIT_SSL_LABS_ENDPOINT", "https://api.ssllabs.com/api/v3/analyze")
    )
    use_ssl_labs: bool = field(default_factory=lambda: _env_bool("SITEAUDIT_USE_SSL_LABS", True))

    # === Execution Settings ===
    checker_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("SITEAUDIT_CHECKER_TIMEOUT", "60"))
    )
    concurrent: bool = field(default_factory=lambda: _env_bool("SITEAUDIT_CONCURRENT", False))
    retry_attempts: int = 2

    # === Report Settings ===
    report_output_dir: Path = field(
        default_factory=lambda: Path(os.getenv("SITEAUDIT_REPORT_DIR", "audit_reports"))
    )
    generate_markdown: bool = True
    generate_json: bool = True

    def __post_init__(self):
        """Validate configuration."""
        self.report_output_dir = Path(self.report_output_dir)

        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.checker_timeout_seconds <= 0:
            raise ValueError("checker_timeout_seconds must be positive")
        if self.retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")


def get_default_config() -> AuditConfig:
    """Получить конфигурацию по умолчанию."""
    return AuditConfig()
