"""
Configuration management for quorumgossip simulations.
"""
import logging
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SimulationSettings(BaseSettings):
    """Simulation parameters loaded from ``QUORUMGOSSIP_*`` environment variables."""

    # Network shape
    num_nodes: int = Field(30, description="Total participants in the simulation")
    p_graph: float = Field(0.2, description="Probability of each directed follow edge")
    p_malicious: float = Field(0.30, description="Fraction of adversarial participants")
    p_tx_distribution: float = Field(0.05, description="Seed transactions per 1000 ids")
    num_rounds: int = Field(15, description="Communication rounds to run")

    # Reproducibility
    graph_seed: int = 7
    adversary_seed: int = 42

    # Seeding and scoring
    seed_coverage: float = Field(0.8, description="Probability a node receives any seeds")
    agreement_ratio: float = Field(0.75, description="Share of compliant nodes that must agree")

    # Execution
    workers: int = Field(1, description="Threads used to process inboxes within a round")

    # Logging Configuration
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="QUORUMGOSSIP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("p_graph", "p_malicious", "p_tx_distribution", "seed_coverage", "agreement_ratio")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        """Probabilities and ratios must lie in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("value must be between 0 and 1")
        return v

    @field_validator("num_nodes", "num_rounds", "workers")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be a positive integer")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept any standard logging level name, case-insensitively."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {v!r}")
        return level


# Create global settings instance
settings: Optional[SimulationSettings] = None


def get_settings(**overrides: Any) -> SimulationSettings:
    """Return the shared settings, or a fresh instance when overrides are given."""
    global settings
    if overrides:
        return SimulationSettings(**overrides)
    if settings is None:
        settings = SimulationSettings()
    return settings
