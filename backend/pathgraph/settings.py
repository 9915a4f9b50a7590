from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_out_dir() -> str:
    # Keep logs and generated snapshots in backend/out unless told otherwise.
    return str(Path(__file__).resolve().parents[1] / "out")


class Settings(BaseSettings):
    """Validated settings (env-driven) for the search engine, codec and service."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    out_dir: str = Field(default_factory=_default_out_dir, alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")

    # Stop once a target is settled and every entry at the same cost is drained.
    search_early_exit: bool = Field(default=True, alias="SEARCH_EARLY_EXIT")
    # 0 keeps relaxation on the driving thread.
    search_parallel_workers: int = Field(
        default=0,
        ge=0,
        le=256,
        alias="SEARCH_PARALLEL_WORKERS",
    )
    search_parallel_min_degree: int = Field(default=4, ge=1, alias="SEARCH_PARALLEL_MIN_DEGREE")

    snapshot_max_bytes: int = Field(default=256 * 1024 * 1024, ge=1024, alias="SNAPSHOT_MAX_BYTES")

    sample_node_count: int = Field(default=26, ge=1, le=26, alias="SAMPLE_NODE_COUNT")
    sample_edge_count: int = Field(default=100, ge=0, le=1_000_000, alias="SAMPLE_EDGE_COUNT")

    api_max_targets: int = Field(default=1024, ge=1, alias="API_MAX_TARGETS")

    @model_validator(mode="after")
    def _clamp_parallelism(self) -> "Settings":
        cpu_cap = max(1, (os.cpu_count() or 1) * 4)
        if self.search_parallel_workers > cpu_cap:
            self.search_parallel_workers = cpu_cap
        self.log_level = str(self.log_level or "INFO").strip().upper() or "INFO"
        return self


settings = Settings()
