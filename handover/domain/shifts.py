"""Results returned by the shift classifier."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

Phase = Literal["day", "night"]
BlockShift = Literal["days", "nights"]


@dataclass(frozen=True, slots=True)
class ShiftClassification:
    """Position of an instant inside a shift pattern's cycle."""

    cycle_day: int
    phase: Phase
    day_key: date
    on_duty: bool = False


@dataclass(frozen=True, slots=True)
class ShiftBlock:
    """A 4-day run of the fixed 8-day on/off cycle (``block_end`` inclusive)."""

    block_start: date
    block_end: date
    is_active: bool

    @property
    def label(self) -> str:
        return f"{self.block_start:%d/%m} - {self.block_end:%d/%m}"


@dataclass(frozen=True, slots=True)
class ShiftWindow:
    start: datetime
    end: datetime
    shift: BlockShift
