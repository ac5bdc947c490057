"""Tunable settings for every pipeline stage.

Values come from config/<name>.yaml (name picked by RIVER_CONFIG, default
"prod"). Every field has a code default, so engines also run without a file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from common.config import ConfigSingleton, build_section, find_config_path, load_yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RIVER_CONFIG"
CONFIG_DIR_ENV_VAR = "RIVER_CONFIG_DIR"
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"

AGGREGATOR_HOSTS = ("news.google.com", "news.yahoo.com", "msn.com")
PRESS_RELEASE_HOSTS = (
    "prnewswire.com",
    "businesswire.com",
    "globenewswire.com",
    "accesswire.com",
    "einpresswire.com",
)


@dataclass(frozen=True)
class ClusteringSettings:
    neighbor_limit: int = 10
    neighbor_window_hours: float = 168.0
    similarity_floor: float = 0.6
    fuzzy_window_hours: float = 96.0
    fuzzy_threshold: float = 0.86
    title_key_max_chars: int = 160
    lookback_hours: float = 24.0
    maintenance_lookback_hours: float = 168.0
    batch_limit: int = 200


@dataclass(frozen=True)
class ScoringSettings:
    window_hours: float = 168.0
    article_half_life_hours: float = 12.0
    cluster_half_life_hours: float = 24.0
    velocity_window_hours: float = 6.0
    max_decay_exponent: float = 60.0

    author_bonus: float = 0.1
    dek_bonus: float = 0.1
    dek_min_chars: int = 80
    aggregator_penalty: float = 0.5
    press_release_penalty: float = 0.3
    aggregator_hosts: tuple[str, ...] = AGGREGATOR_HOSTS
    press_release_hosts: tuple[str, ...] = PRESS_RELEASE_HOSTS

    # Article score = (1 - blend) * quality + blend * freshness; the blend
    # moves from min to max as the window shrinks towards the reference.
    freshness_blend_min: float = 0.35
    freshness_blend_max: float = 0.7
    freshness_reference_hours: float = 24.0

    coverage_weight: float = 0.35
    velocity_weight: float = 0.25
    freshness_weight: float = 0.2
    source_weight_weight: float = 0.1
    pooled_weight: float = 0.1
    size_coverage_factor: float = 0.5


@dataclass(frozen=True)
class RewriteSettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 80
    timeout_seconds: float = 20.0
    max_retries: int = 2
    prompt_max_chars: int = 110
    max_dek_chars: int = 600
    snippet_max_chars: int = 400

    max_chars: int = 220
    min_chars_with_content: int = 40
    min_chars_without_content: int = 30
    social_post_words: int = 40
    social_post_min_words: int = 6
    ratio_with_content: float = 0.5
    min_words_with_content: int = 6
    ratio_without_content: float = 0.35
    min_words_without_content: int = 7

    check_hype: bool = True
    check_hedge: bool = True
    check_vague: bool = True

    lookback_hours: float = 504.0
    batch_limit: int = 40


@dataclass(frozen=True)
class EmbeddingSettings:
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    local_model: str = "all-MiniLM-L6-v2"
    dimensions: int = 1536
    max_chars: int = 1200
    word_limit: int | None = None
    timeout_seconds: float = 20.0
    max_retries: int = 2
    batch_limit: int = 200
    lookback_hours: float = 168.0


@dataclass(frozen=True)
class BatchSettings:
    concurrency: int = 4


@dataclass(frozen=True)
class Settings:
    clustering: ClusteringSettings = field(default_factory=ClusteringSettings)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    rewrite: RewriteSettings = field(default_factory=RewriteSettings)
    embedding: EmbeddingSettings = field(default_factory=EmbeddingSettings)
    batch: BatchSettings = field(default_factory=BatchSettings)


def settings_from_dict(data: dict) -> Settings:
    """Build Settings from a parsed config mapping."""
    return Settings(
        clustering=build_section(ClusteringSettings, data.get("clustering")),
        scoring=build_section(ScoringSettings, data.get("scoring")),
        rewrite=build_section(RewriteSettings, data.get("rewrite")),
        embedding=build_section(EmbeddingSettings, data.get("embedding")),
        batch=build_section(BatchSettings, data.get("batch")),
    )


def _apply_env_overrides(settings: Settings) -> Settings:
    rewrite_model = os.environ.get("REWRITE_MODEL", "").strip()
    if rewrite_model:
        settings = replace(settings, rewrite=replace(settings.rewrite, model=rewrite_model))
    dimensions = os.environ.get("EMBEDDING_DIMENSIONS", "").strip()
    if dimensions:
        settings = replace(
            settings, embedding=replace(settings.embedding, dimensions=int(dimensions))
        )
    return settings


def load_settings(config_name: str | None = None, config_dir: Path | None = None) -> Settings:
    """Load settings from YAML, falling back to code defaults when no file exists."""
    config_dir = config_dir or Path(os.environ.get(CONFIG_DIR_ENV_VAR, DEFAULT_CONFIG_DIR))
    try:
        path = find_config_path(config_name, config_dir, env_var=CONFIG_ENV_VAR)
    except FileNotFoundError as exc:
        logger.warning(
            "%s; using default settings (set %s to the directory holding the YAML files)",
            exc,
            CONFIG_DIR_ENV_VAR,
        )
        return _apply_env_overrides(Settings())
    logger.info("Loading settings from %s", path)
    return _apply_env_overrides(settings_from_dict(load_yaml(path)))


_manager: ConfigSingleton[Settings] = ConfigSingleton(load_settings)
get_settings = _manager.get
set_settings = _manager.set
reset_settings = _manager.reset
