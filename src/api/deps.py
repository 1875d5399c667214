import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Header, Request

from src.components.engagement import EngagementTracker, TrackerRegistry
from src.components.feed import FeedService
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = Path(os.environ.get("FEED_RULES_PATH", self.base_dir / "rules.yaml"))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Composition root state (built in the app lifespan) ---
def get_rules(request: Request) -> Rules:
    return request.app.state.rules


def get_tracker_registry(request: Request) -> TrackerRegistry:
    return request.app.state.tracker_registry


def get_feed_service(request: Request) -> FeedService:
    return request.app.state.feed_service


# --- Identity ---
def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str | None:
    """Caller identity from X-User-Id; missing or blank means guest."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def get_tracker(
    registry: TrackerRegistry = Depends(get_tracker_registry),
    user_id: str | None = Depends(get_user_id),
) -> EngagementTracker:
    return registry.for_user(user_id)
