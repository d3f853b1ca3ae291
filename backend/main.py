"""
FastAPI backend для аудита сайтов.

Один оркестратор на приложение; каждый POST /audit запускает отдельный прогон.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import get_settings
from backend.routers import audit, health
from siteaudit import __version__
from siteaudit.orchestrator import AuditOrchestrator

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle: startup и shutdown."""

    # === STARTUP ===
    settings = get_settings()
    config = settings.to_audit_config()
    app.state.orchestrator = AuditOrchestrator(config)

    mode = "concurrent" if config.concurrent else "sequential"
    logger.info(f"🚀 Site audit API started ({mode} mode)")
    if not config.use_ssl_labs:
        logger.info("SSL Labs lookups disabled")

    yield

    # === SHUTDOWN ===
    app.state.orchestrator = None
    logger.info("Site audit API stopped")


app = FastAPI(
    title="Site Audit API",
    version=__version__,
    description="Website audit: HTTPS topology, robots.txt, analytics, SSL, meta, content, images",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Подключение роутеров ====================

app.include_router(health.router)
app.include_router(audit.router)


# ==================== Run ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
