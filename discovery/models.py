"""Typed models for the alternative discovery pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Frequency = Literal["Weekly", "Fortnightly", "Monthly", "Quarterly", "Yearly", "Per Unit"]
SortPreference = Literal["price", "distance", "balanced"]
CandidateType = Literal["physical", "service", "subscription", "insurance"]
ProgressStatus = Literal[
    "started", "searching", "processing", "formatting", "completed", "error", "no-results"
]
ProviderStatus = Literal[
    "ok", "error", "timeout", "unconfigured", "exhausted", "rate_limited", "no_results"
]
RunState = Literal[
    "idle",
    "dispatching",
    "collecting",
    "deduplicating",
    "filtering",
    "scoring",
    "ranked",
    "failed",
    "cancelled",
]
DiscoveryOutcome = Literal["ranked", "no_alternatives", "search_failed", "cancelled"]

TERMINAL_PROGRESS_STATUSES = frozenset({"completed", "error", "no-results"})
# Provider statuses that count as a failed call; "no_results" is a successful empty answer.
FAILED_PROVIDER_STATUSES = frozenset({"error", "timeout", "unconfigured", "exhausted", "rate_limited"})

# Multipliers that turn one billing period into an average month.
MONTHLY_FACTORS: Dict[str, float] = {
    "Weekly": 4.33,
    "Fortnightly": 2.17,
    "Monthly": 1.0,
    "Quarterly": 1 / 3,
    "Yearly": 1 / 12,
}


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Expense(BaseModel):
    """A recurring expense supplied by the caller. Immutable for a discovery run."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(..., min_length=1)
    description: str = ""
    category: str = ""
    amount: float = Field(..., gt=0)
    frequency: Frequency = "Monthly"
    quantity: Optional[float] = Field(None, gt=0)
    is_physical: Optional[bool] = None

    @field_validator("description", "category", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Optional[str]) -> str:
        return value or ""

    @model_validator(mode="after")
    def _require_quantity_per_unit(self) -> "Expense":
        if self.frequency == "Per Unit" and self.quantity is None:
            raise ValueError("quantity is required when frequency is 'Per Unit'")
        return self

    @property
    def text(self) -> str:
        """Lower-cased name, description and category for keyword checks."""
        return f"{self.name} {self.description} {self.category}".lower()

    def monthly_amount(self, amount: Optional[float] = None) -> float:
        value = self.amount if amount is None else amount
        if self.frequency == "Per Unit":
            return value * (self.quantity or 1)
        return value * MONTHLY_FACTORS.get(self.frequency, 1.0)


class UserPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    location_radius_km: int = Field(10, ge=1, le=50)
    sort_preference: SortPreference = "balanced"
    coordinates: Optional[Coordinates] = None
    locality: str = ""
    country: str = "Australia"
    country_code: str = "au"


class StoreLocation(BaseModel):
    name: str
    address: str = ""
    distance_km: float = Field(..., ge=0)
    rating: Optional[float] = None
    open_now: Optional[bool] = None
    coordinates: Optional[Coordinates] = None
    place_id: Optional[str] = None

    @property
    def formatted_distance(self) -> str:
        return f"{round(self.distance_km, 1)}km"


class AlternativeCandidate(BaseModel):
    """Canonical cheaper-alternative representation shared by every provider."""

    id: str
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    savings: float
    url: str = ""
    source: str = "Unknown"
    type: CandidateType = "physical"
    location: Optional[StoreLocation] = None
    confidence: Optional[int] = Field(None, ge=0, le=100)
    provider_id: str = ""
    is_synthetic: bool = False
    image_url: Optional[str] = None
    provenance: Dict[str, object] = Field(default_factory=dict)
    # savings normalised to a month, set once the candidate makes the shortlist
    monthly_savings: Optional[float] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Optional[Union[int, float]]) -> Optional[int]:
        if value is None:
            return None
        return max(0, min(100, int(round(float(value)))))

    def with_monthly_savings(self, expense: Expense) -> "AlternativeCandidate":
        return self.model_copy(update={"monthly_savings": round(expense.monthly_amount(self.savings), 2)})


class ProviderQuery(BaseModel):
    """Provider-specific query derived once per expense per provider."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    query: str
    filters: Dict[str, Union[str, float, int, bool, List[str]]] = Field(default_factory=dict)
    metadata: Dict[str, str] = Field(default_factory=dict)
    radius_km: int = 10
    coordinates: Optional[Coordinates] = None
    sort_preference: SortPreference = "balanced"
    locality: str = ""
    country_code: str = "au"


class ProviderQueryMap(BaseModel):
    """Collection of per-provider queries kept for auditing a run."""

    queries: Dict[str, ProviderQuery] = Field(default_factory=dict)

    def add(self, provider_query: ProviderQuery) -> None:
        self.queries[provider_query.provider_id] = provider_query

    def get(self, provider_id: str) -> Optional[ProviderQuery]:
        return self.queries.get(provider_id)


class ProgressEvent(BaseModel):
    source: str
    status: ProgressStatus
    progress: int = Field(0, ge=0, le=100)
    message: Optional[str] = None
    count: Optional[int] = None
    overall_progress: int = Field(0, ge=0, le=100)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PROGRESS_STATUSES


class ProviderStatusSnapshot(BaseModel):
    provider_id: str
    status: ProviderStatus
    result_count: int = 0
    latency_ms: Optional[int] = None
    message: Optional[str] = None
    used_fallback: bool = False

    @property
    def failed(self) -> bool:
        return self.status in FAILED_PROVIDER_STATUSES


class DiscoveryResult(BaseModel):
    """Everything a caller needs to render the outcome of one discovery run."""

    outcome: DiscoveryOutcome
    alternatives: List[AlternativeCandidate] = Field(default_factory=list)
    best: Optional[AlternativeCandidate] = None
    provider_statuses: List[ProviderStatusSnapshot] = Field(default_factory=list)
    provider_queries: ProviderQueryMap = Field(default_factory=ProviderQueryMap)
    user_message: Optional[str] = None
    state: RunState = "idle"
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def all_providers_failed(self) -> bool:
        return self.outcome == "search_failed"

    def provider_summary(self) -> Dict[str, ProviderStatusSnapshot]:
        return {status.provider_id: status for status in self.provider_statuses}
