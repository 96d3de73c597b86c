"""Pydantic request/response models for evaluation endpoints."""

from __future__ import annotations

from typing import Literal, Optional, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.domain import SkimType


class ZoneModel(BaseModel):
    zone_id: str
    index: Optional[int] = Field(default=None, ge=0, description="Matrix index; defaults to list position.")
    cluster: Optional[str] = Field(default=None, description="Region code, e.g. 'CH'.")


class DemandModel(BaseModel):
    from_zone: str
    to_zone: str
    demand: float = Field(..., ge=0.0)


class RouteModel(BaseModel):
    destination_zone: str
    departure_time: float = Field(..., allow_inf_nan=False, description="Seconds after midnight.")
    arrival_time: float = Field(..., allow_inf_nan=False, description="Seconds after midnight.")
    transfers: int = Field(default=0, ge=0)
    demand: float = Field(default=0.0, ge=0.0)
    adaptation_time: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Seconds; derived from the scenario departure window when omitted.",
    )

    @model_validator(mode="after")
    def validate_times(self) -> "RouteModel":
        if self.arrival_time < self.departure_time:
            raise ValueError("arrival_time must not be before departure_time")
        return self


class OriginRoutesModel(BaseModel):
    origin_zone: str
    routes: Sequence[RouteModel] = Field(default_factory=list)


class UnroutablePartModel(BaseModel):
    from_zone: str
    to_zone: str
    demand: float = Field(..., ge=0.0)


class DepartureWindow(BaseModel):
    start: float = Field(..., allow_inf_nan=False, description="Desired departure interval start, seconds after midnight.")
    end: float = Field(..., allow_inf_nan=False, description="Desired departure interval end, seconds after midnight.")


class ScenarioModel(BaseModel):
    name: str
    routes: Sequence[OriginRoutesModel] = Field(default_factory=list)
    unroutable: Sequence[UnroutablePartModel] = Field(default_factory=list)
    departure_window: Optional[DepartureWindow] = None


class ElasticityEntryModel(BaseModel):
    cluster: int
    segment: str
    description: str = ""
    skim_type: SkimType
    elasticity0: float
    a: float = 0.0
    b: float = 0.0
    min: float
    max: float
    f_min: float
    f_max: float
    kg_max: Optional[float] = None


class EvaluationRequest(BaseModel):
    zones: Sequence[ZoneModel] = Field(..., min_length=1)
    demand: Sequence[DemandModel] = Field(default_factory=list)
    reference: ScenarioModel
    variants: Sequence[ScenarioModel] = Field(default_factory=list)
    segment: Optional[str] = Field(default=None, description="Elasticity segment; defaults to configuration.")
    elasticities: Optional[Sequence[ElasticityEntryModel]] = Field(
        default=None,
        description="Elasticity table rows; the configured elasticity file is read when omitted.",
    )
    origin_zones: Optional[Sequence[str]] = Field(default=None, description="Origins to evaluate; defaults to all zones.")
    delta_t_policy: Optional[Literal["boundaries", "center"]] = None
    thread_count: Optional[int] = Field(default=None, ge=1)
    ordered: Optional[bool] = None
    unroutable_share_limit: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    persist: bool = Field(default=False, description="Whether to persist outputs to files.")
    run_label: Optional[str] = Field(default=None, description="Prefix of the persisted run directory.")

    @field_validator("variants")
    @classmethod
    def validate_variant_names(cls, value: Sequence[ScenarioModel]) -> Sequence[ScenarioModel]:
        names = [scenario.name for scenario in value]
        if len(names) != len(set(names)):
            raise ValueError("variant names must be unique")
        return value

    @model_validator(mode="after")
    def validate_scenario_names(self) -> "EvaluationRequest":
        if any(variant.name == self.reference.name for variant in self.variants):
            raise ValueError("variant names must differ from the reference name")
        return self


class UnroutableStatsModel(BaseModel):
    total: Optional[float]
    percent: Optional[float]
    largest_zone: Optional[str]
    largest_zone_demand: Optional[float]


class ScenarioResultModel(BaseModel):
    name: str
    skims: dict[str, dict[str, list[Optional[float]]]]
    unroutable: UnroutableStatsModel


class FactorModel(BaseModel):
    variant: str
    from_zone: str
    to_zone: str
    f_jrt: Optional[float]
    f_adt: Optional[float]
    f_ntr: Optional[float]
    total_factor: Optional[float]
    demand: float = 0.0
    adjusted_demand: Optional[float] = None


class EvaluationResponse(BaseModel):
    scenarios: list[ScenarioResultModel]
    factors: list[FactorModel]
    completed_zones: list[str]
    failed_zones: dict[str, str]
    metadata: dict
