import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from embedding_wizard.api.routes import health, wizard
from embedding_wizard.config import settings as app_settings
from embedding_wizard.middleware.error_handler import register_error_handlers
from embedding_wizard.middleware.security import SecurityMiddleware
from embedding_wizard.services.baseline_sync import BaselineSync
from embedding_wizard.storage.session_store import SessionStore

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if app_settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


async def _periodic_session_cleanup(store: SessionStore) -> None:
    """Periodically discard abandoned wizard sessions."""
    while True:
        await asyncio.sleep(app_settings.session_cleanup_interval)
        try:
            discarded = store.cleanup_expired()
            if discarded:
                logger.info("Discarded %d idle wizard sessions", discarded)
        except Exception:
            logger.warning("Session cleanup failed", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: poll the live search settings for the whole process lifetime
    baseline: BaselineSync = app.state.baseline
    if app.state.poll_baseline:
        logger.info(
            "Polling %s every %.1fs", app_settings.api_base_url, baseline.poll_interval
        )
        baseline.start()
    cleanup_task = asyncio.create_task(_periodic_session_cleanup(app.state.sessions))
    yield
    # Shutdown
    cleanup_task.cancel()
    app.state.sessions.clear()
    await baseline.stop()


def create_app(baseline: BaselineSync | None = None, poll_baseline: bool = True) -> FastAPI:
    app = FastAPI(title=app_settings.app_name, version="0.1.0", lifespan=lifespan)

    app.state.baseline = baseline or BaselineSync()
    app.state.sessions = SessionStore(app.state.baseline)
    app.state.poll_baseline = poll_baseline

    # Middleware (order matters: outermost first)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    register_error_handlers(app)

    # Routes
    app.include_router(health.router)
    app.include_router(wizard.router)
    return app


app = create_app()
