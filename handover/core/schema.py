from __future__ import annotations

import json
import uuid
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def new_job_id() -> str:
    return uuid.uuid4().hex


class WireModel(BaseModel):
    """Base for records exchanged with the browser client (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class JobRecord(WireModel):
    id: str = Field(default_factory=new_job_id)
    date: datetime
    department: str
    description: str = ""
    job_complete: bool = False
    sap_complete: bool = False
    job_number: str | None = None
    flag: str | None = None
    flag_details: str | None = None
    resolution: str | None = None


class CompletedJobRecord(JobRecord):
    completed_at: datetime


class PersistableState(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    active_jobs: list[JobRecord] = Field(default_factory=list)
    completed_jobs: list[CompletedJobRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "PersistableState":
        for label, jobs in (("activeJobs", self.active_jobs), ("completedJobs", self.completed_jobs)):
            ids = [job.id for job in jobs]
            if len(ids) != len(set(ids)):
                raise ValueError(f"duplicate job id in {label}")
        return self

    def serialise(self) -> str:
        """Canonical JSON used for change detection and storage."""

        return json.dumps(self.to_wire(), sort_keys=True, separators=(",", ":"))


class ShiftPattern(WireModel):
    id: str
    name: str
    color: str = "#3b82f6"
    reference_date: date
    cycle_length: int = Field(default=16, ge=1)
    day_start_cycle_day: int = Field(default=0, ge=0)
    night_start_cycle_day: int = Field(default=8, ge=0)

    @model_validator(mode="after")
    def _check_offsets(self) -> "ShiftPattern":
        if self.day_start_cycle_day >= self.cycle_length:
            raise ValueError("dayStartCycleDay must be smaller than cycleLength")
        if self.night_start_cycle_day >= self.cycle_length:
            raise ValueError("nightStartCycleDay must be smaller than cycleLength")
        return self


class FlagPreset(WireModel):
    id: str
    shift_number: str
    priority_color: Literal["red", "amber", "green"] = "amber"
    details: str = ""


class StoredItem(BaseModel):
    id: str
    created_at: str
    data: Any = None


class SaveReceipt(BaseModel):
    ok: bool = True
    id: str
    created_at: str
