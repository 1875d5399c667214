import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.memory_store import InMemoryEngagementStore
from src.api.deps import get_settings
from src.components.engagement import EngagementStorePort, TimerFactory, TrackerRegistry
from src.components.feed import FeedService
from src.ports.clock import ClockPort
from src.rules.loader import load_rules
from src.rules.models import Rules

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    rules: Rules | None = None,
    store: EngagementStorePort | None = None,
    clock: ClockPort | None = None,
    timer_factory: TimerFactory | None = None,
) -> FastAPI:
    """
    Build the API with its composition root.

    Anything not injected is built in the lifespan: rules from
    FEED_RULES_PATH (fail-fast), an in-memory engagement store and the
    system clock.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        loaded = rules
        if loaded is None:
            settings = get_settings()
            try:
                loaded = load_rules(settings.rules_path)
                logger.info("Rules loaded from %s", settings.rules_path)
            except Exception as e:
                logger.critical("Rules load failed: %s", e)
                sys.exit(1)

        tracking = loaded.tracking.to_config()
        engagement_store = store or InMemoryEngagementStore(
            clock=clock,
            max_ids_per_query=tracking.max_ids_per_query,
        )
        registry = TrackerRegistry(
            engagement_store,
            clock=clock,
            config=tracking,
            score_config=loaded.engagement_score.to_config(),
            timer_factory=timer_factory,
        )

        app.state.rules = loaded
        app.state.tracker_registry = registry
        # Reads only; the guest tracker never writes
        app.state.feed_service = FeedService(
            registry.for_user(None),
            clock=clock,
            scoring=loaded.scoring.to_config(),
            diversity=loaded.diversity.to_config(),
            max_limit=loaded.feed.max_limit,
        )

        yield

        # Flush buffered view time before the store goes away
        registry.cleanup_all()

    app = FastAPI(
        title="Discover Feed Ranker API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # --- Routers ---
    from src.api.routes import engagement, feed

    app.include_router(engagement.router, prefix="/api/engagement", tags=["Engagement"])
    app.include_router(feed.router, prefix="/api/feed", tags=["Feed"])

    # CORS (Allow Frontend)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "service": "feed-ranker"}

    return app


app = create_app()
