"""Data models for urgent quest extraction and reminders."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Quest:
    """Scheduled urgent quest occurrence."""
    start_time: datetime  # timezone-aware, UTC
    name: str


class QuestState(Enum):
    """Classification of a pending quest against the current time."""
    PAST = 'past'
    FUTURE_NEAR = 'future_near'
    FUTURE_FAR = 'future_far'


class CellMiss(Enum):
    """Reason a calendar cell produced no quest."""
    NO_COLOR = 'no_color'
    UNMAPPED_COLOR = 'unmapped_color'
    NO_COLUMN_DATE = 'no_column_date'
    INVALID_LOCAL_TIME = 'invalid_local_time'


@dataclass(frozen=True)
class CellResult:
    """Outcome of decoding a single calendar cell."""
    quest: Optional[Quest] = None
    miss: Optional[CellMiss] = None

    @property
    def found(self) -> bool:
        return self.quest is not None
