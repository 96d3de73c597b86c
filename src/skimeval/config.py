"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SKIMEVAL_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Skim Evaluation API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for inputs and run outputs.")
    elasticities_file: Path = Field(
        default=Path("data/elasticities.csv"),
        description="Semicolon separated elasticity table (one row per cluster x segment x skim type).",
    )
    elasticities_segment: str = Field(default="Fr", description="Demand segment used to filter the elasticity table.")
    transfer_offset: float = Field(
        default=0.5,
        gt=0.0,
        description="Offset added to transfer counts before forming the variant/reference ratio.",
    )
    adaptation_time_upper_bound: float = Field(
        default=90.0,
        ge=0.0,
        description="Upper bound (minutes) for the reference adaptation time covariate.",
    )
    home_cluster: str = Field(default="CH", description="Region code treated as domestic.")
    domestic_cluster_id: int = Field(default=1)
    international_cluster_id: int = Field(default=2)
    zones_file: Optional[Path] = Field(default=None, description="Zone lookup CSV with NAME, NO and cluster columns.")
    cluster_column: str = Field(default="MARKTGEBIETVARELAST")
    thread_count: int = Field(default=4, ge=1, description="Size of the per-origin-zone worker pool.")
    ordered_results: bool = Field(
        default=True,
        description="Deliver results to handlers in submission order instead of completion order.",
    )
    unroutable_share_limit: float = Field(default=0.95, ge=0.0, le=1.0)
    delta_t_policy: Literal["boundaries", "center"] = Field(default="boundaries")

    @field_validator("data_root", "elasticities_file", "zones_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()


settings = Settings()
