"""
Ranking configuration: candidate pools, scoring, diversity, exploration, feedback.

RankingConfig defaults are defined here. The server may pass a dict
(e.g. from a JSON file named by RANKING_CONFIG_PATH); from_dict() merges it with these defaults.
The model is frozen: one instance is built at startup and injected everywhere.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _default_interaction_weights() -> Dict[str, float]:
    return {
        "SAVE": 3.0,
        "LIKE": 2.0,
        "OPEN_LONG": 1.5,
        "OPEN_MEDIUM": 1.0,
        "OPEN_SHORT": 0.2,
        "DISLIKE": -2.0,
        "HIDE": -3.0,
    }


class RankingConfig(BaseModel):
    """Configuration for the feed ranking engine."""

    model_config = ConfigDict(frozen=True)

    # Tag threaded through scoring and impressions so analytics can tell runs apart.
    algorithm_version: str = "hybrid-mmr-v2"

    # -------------------------------------------------------------------------
    # Candidate Generation
    # -------------------------------------------------------------------------

    # Only articles published within this many days are eligible.
    max_age_days: int = 30
    # Cap on the merged, deduplicated candidate pool.
    candidate_pool_size: int = 500
    # Nearest neighbours fetched for the user's interest vector.
    vector_top_k: int = 200
    # Trending pool: trailing window and cap.
    trending_window_days: int = 7
    trending_limit: int = 50
    # trending = likes * like + saves * save + opens * open
    trending_weight_like: float = 3.0
    trending_weight_save: float = 5.0
    trending_weight_open: float = 1.0

    # -------------------------------------------------------------------------
    # Scoring
    # score = w_rel * max(topic, vector) + w_fresh * freshness + w_sub * subscribed
    #       + w_aff * affinity + w_qual * quality - w_seen * seen
    # -------------------------------------------------------------------------

    weight_relevance: float = 1.5
    weight_freshness: float = 0.8
    weight_subscribed: float = 0.6
    weight_affinity: float = 0.4
    weight_quality: float = 0.3
    weight_seen_penalty: float = 1.0

    # freshness = exp(-age_hours / tau). Estimated dates get the neutral constant.
    freshness_tau_hours: float = 48.0
    estimated_date_freshness: float = 0.3
    # Articles impressed within this window get seen_penalty = 1.
    seen_window_hours: int = 24

    # -------------------------------------------------------------------------
    # Diversity Reranker (greedy MMR)
    # value = lambda * score - (1 - lambda) * penalty
    # -------------------------------------------------------------------------

    mmr_lambda: float = 0.8
    same_source_penalty: float = 0.8
    topic_overlap_scale: float = 0.5
    # Hard cap: within the first source_cap_window picks, at most source_cap per source.
    source_cap: int = 2
    source_cap_window: int = 20
    max_ranked_items: int = 100

    # -------------------------------------------------------------------------
    # Exploration
    # -------------------------------------------------------------------------

    explore_rate: float = 0.15
    explore_pool_size: int = 20
    explore_score: float = 0.5

    # -------------------------------------------------------------------------
    # Pagination
    # -------------------------------------------------------------------------

    page_size: int = 20

    # -------------------------------------------------------------------------
    # Feedback
    # -------------------------------------------------------------------------

    # Signed weights per interaction; OPEN is bucketed by dwell seconds.
    interaction_weights: Dict[str, float] = Field(default_factory=_default_interaction_weights)
    dwell_medium_seconds: float = 10.0
    dwell_long_seconds: float = 60.0
    topic_weight_delta: float = 0.2
    source_affinity_delta: float = 0.3
    weight_min: float = -3.0
    weight_max: float = 3.0
    # EMA learning rate for the interest vector.
    interest_vector_alpha: float = 0.05
    interest_vector_model: str = "text-embedding-3-small"

    @model_validator(mode="after")
    def check_ranges(self):
        if not 0.0 <= self.mmr_lambda <= 1.0:
            raise ValueError(f"mmr_lambda must be within [0, 1], got {self.mmr_lambda}")
        if not 0.0 < self.explore_rate <= 1.0:
            raise ValueError(f"explore_rate must be within (0, 1], got {self.explore_rate}")
        if not 0.0 < self.interest_vector_alpha <= 1.0:
            raise ValueError(
                f"interest_vector_alpha must be within (0, 1], got {self.interest_vector_alpha}"
            )
        if self.weight_min >= self.weight_max:
            raise ValueError("weight_min must be below weight_max")
        if self.page_size < 1:
            raise ValueError("page_size must be positive")
        return self

    @property
    def explore_interval(self) -> int:
        """Reranked items between two exploration slots (0.15 -> 7)."""
        return max(1, round(1 / self.explore_rate))

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RankingConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat = {}
        for group in ("candidates", "scoring", "diversity", "exploration", "feedback"):
            if group in config_dict:
                flat.update(config_dict[group])
        if "scoring_weights" in config_dict:
            sw = config_dict["scoring_weights"]
            for key in ("relevance", "freshness", "subscribed", "affinity", "quality", "seen_penalty"):
                if key in sw:
                    flat[f"weight_{key}"] = sw[key]
        if "interaction_weights" in config_dict:
            flat["interaction_weights"] = {
                **_default_interaction_weights(),
                **config_dict["interaction_weights"],
            }
        if "algorithm_version" in config_dict:
            flat["algorithm_version"] = config_dict["algorithm_version"]
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = RankingConfig()


def resolve_config(config: Optional["RankingConfig"]) -> "RankingConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
