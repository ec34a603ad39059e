"""Environment-driven settings for the synergy engine.

Scalar tunables can be overridden with COGSYNERGY_* environment variables
(or a .env file), e.g. COGSYNERGY_SYNERGY_THRESHOLD=0.75.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cogsynergy.config import AutogenesisConfig


class SynergySettings(BaseSettings):
    """Process-level settings (lowercase attribute names per pydantic-settings)."""
    model_config = SettingsConfigDict(
        env_prefix="COGSYNERGY_",
        env_file=".env",
        extra="ignore",
    )

    config_name: str = "default"
    enabled: bool = True
    synergy_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    max_auto_nodes: int = Field(default=100, ge=0)
    max_auto_links: int = Field(default=500, ge=0)
    learning_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    mutation_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    fitness_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    evaluation_interval_ms: int = Field(default=5000, ge=0)
    max_gap_scan_nodes: int = Field(default=200, ge=2)
    maintenance_every: int = Field(default=0, ge=0)

    def to_autogenesis_config(self) -> AutogenesisConfig:
        """Build a config record with default (empty) template lists."""
        return AutogenesisConfig(
            name=self.config_name,
            enabled=self.enabled,
            synergy_threshold=self.synergy_threshold,
            max_auto_nodes=self.max_auto_nodes,
            max_auto_links=self.max_auto_links,
            learning_rate=self.learning_rate,
            mutation_rate=self.mutation_rate,
            fitness_threshold=self.fitness_threshold,
            evaluation_interval_ms=self.evaluation_interval_ms,
            max_gap_scan_nodes=self.max_gap_scan_nodes,
            maintenance_every=self.maintenance_every,
        )


@lru_cache(maxsize=1)
def get_settings() -> SynergySettings:
    """Return the cached process settings."""
    return SynergySettings()
