"""
Shared Pydantic request/response models for the free-time API.

These give FastAPI the type information it needs for validation and
accurate OpenAPI schemas.

Usage:
    from api.response_models import FreeTimeResponse, ReservationRequest

    @router.post("/endpoint", response_model=FreeTimeResponse)
    def my_endpoint(body: ReservationRequest): ...
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from studytime.free_time import Interval, total_duration

# ==== Intervals ====
# Shape on the wire: {"start": ISO-8601, "end": ISO-8601}


class IntervalModel(BaseModel):
    """A closed-open [start, end) time range."""

    start: datetime = Field(description="Inclusive start (ISO-8601)")
    end: datetime = Field(description="Exclusive end (ISO-8601)")

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "IntervalModel":
        try:
            inverted = self.end < self.start
        except TypeError as e:
            raise ValueError("start and end must both carry a timezone or both omit it") from e
        if inverted:
            raise ValueError("end must not precede start")
        return self

    def to_interval(self) -> Interval:
        return Interval(self.start, self.end)

    @classmethod
    def from_interval(cls, interval: Interval) -> "IntervalModel":
        return cls(start=interval.start, end=interval.end)


def intervals_out(free_time) -> list[IntervalModel]:
    return [IntervalModel.from_interval(iv) for iv in free_time]


# ==== Requests ====


class FreeTimeRequest(BaseModel):
    """Window plus busy intervals, as the calendar collaborator reports them."""

    window_start: datetime = Field(description="Start of the scheduling window")
    window_end: datetime = Field(description="End of the scheduling window (exclusive)")
    busy: list[IntervalModel] = Field(default_factory=list, description="Busy intervals, any order")
    min_keep_minutes: int | None = Field(
        default=None, gt=0, description="Override the minimum free gap kept"
    )


class ReservationRequest(BaseModel):
    """How many reminder slots to commit."""

    num_events: int | None = Field(default=None, ge=0, description="Reminders to place")
    block_minutes: int | None = Field(
        default=None, gt=0, description="Minutes each reminder occupies"
    )


# ==== Responses ====


class FreeTimeResponse(BaseModel):
    """A free-time set."""

    user_id: str | None = Field(default=None, description="Ledger owner, when persisted")
    free_time: list[IntervalModel] = Field(default_factory=list)
    total_minutes: int = Field(default=0, description="Sum of free durations in minutes")

    @classmethod
    def build(cls, free_time, user_id: str | None = None) -> "FreeTimeResponse":
        return cls(
            user_id=user_id,
            free_time=intervals_out(free_time),
            total_minutes=int(total_duration(free_time).total_seconds() // 60),
        )


class ReservationResponse(BaseModel):
    """Scheduled reminder instants and the ledger left after reserving them."""

    user_id: str
    requested: int = Field(description="Reminders asked for")
    scheduled: list[datetime] = Field(default_factory=list, description="Instants to send at")
    free_time: list[IntervalModel] = Field(default_factory=list, description="Updated ledger")


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = {"extra": "allow"}


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or error")
    version: str = Field(description="API version string")
    timestamp: str = Field(description="ISO timestamp")
