from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.components.engagement import EngagementScoreConfig, TrackingConfig
from src.components.scoring import DiversityConfig, ScoringConfig


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class ScoringRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    engagement_weight: float = Field(ge=0)
    recency_weight: float = Field(ge=0)
    recency_half_life_days: float = Field(gt=0)
    max_recency_boost: float = Field(gt=0)
    followed_artist_boost: float = Field(ge=1)
    min_final_score: float = Field(ge=0)
    max_engagement_score: float = Field(gt=0)
    jitter_modulus: int = Field(gt=0)
    jitter_divisor: float = Field(gt=0)
    placeholder_tag: str = Field(min_length=1)

    def to_config(self) -> ScoringConfig:
        return ScoringConfig(**self.model_dump())

class DiversityRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    penalty: float = Field(ge=0)
    artist_window: int = Field(ge=1)
    image_window: int = Field(ge=1)
    image_penalty_multiplier: float = Field(ge=0)
    image_key_length: int = Field(ge=1)
    min_score: float = Field(ge=0)

    def to_config(self) -> DiversityConfig:
        return DiversityConfig(**self.model_dump())

class EngagementScoreRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    view_time_weight: float = Field(ge=0)
    likes_weight: float = Field(ge=0)
    clicks_weight: float = Field(ge=0)
    views_weight: float = Field(ge=0)
    precision: int = Field(ge=0)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "EngagementScoreRules":
        total = self.view_time_weight + self.likes_weight + self.clicks_weight + self.views_weight
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"engagement_score weights must sum to 1.0, got {total}")
        return self

    def to_config(self) -> EngagementScoreConfig:
        return EngagementScoreConfig(**self.model_dump())

class TrackingRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_view_time_ms: float = Field(ge=0)
    flush_interval_seconds: float = Field(gt=0)
    max_ids_per_query: int = Field(ge=1)
    flush_max_workers: int = Field(ge=1)
    idle_tracker_ttl_seconds: float = Field(default=300.0, gt=0)
    idempotent_likes: bool = False

    def to_config(self) -> TrackingConfig:
        return TrackingConfig(**self.model_dump())

class FeedRules(BaseModel):
    default_sort: Literal["popular", "newest", "oldest", "likes", "recent"] = "popular"
    default_limit: int = Field(default=50, ge=1)
    max_limit: int = Field(default=200, ge=1)

class Rules(BaseModel):
    project: ProjectRules
    scoring: ScoringRules
    diversity: DiversityRules
    engagement_score: EngagementScoreRules
    tracking: TrackingRules
    feed: FeedRules = FeedRules()
