"""Shared type definitions for the incident pipeline."""

from dataclasses import dataclass
from enum import StrEnum

type ViewRow = dict[str, object]
type ViewResult = dict[str, object]
type ValidationOutcome = dict[str, bool | str | list[str]]

ALL_APPLICATIONS = "all"


class Priority(StrEnum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Origin(StrEnum):
    PRIMARY_MONTHLY = "primary-monthly"
    WEEKLY_CORRECTIVE = "weekly-corrective"
    PROBLEM_TICKET = "problem-ticket"


class CorrectiveStatus(StrEnum):
    IN_BACKLOG = "In Backlog"
    DEV_IN_PROGRESS = "Dev in Progress"
    IN_TESTING = "In Testing"
    PRD_DEPLOYMENT = "PRD Deployment"


class RecurrenceKind(StrEnum):
    RECURRING = "recurring"
    NEW = "new"
    UNASSIGNED = "unassigned"


# Display order of the priority columns in every priority breakdown
PRIORITY_ORDER = [Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW]

PRIORITY_RANK = {
    Priority.CRITICAL: 1,
    Priority.HIGH: 2,
    Priority.MEDIUM: 3,
    Priority.LOW: 4,
}
UNKNOWN_PRIORITY_RANK = 5

CORRECTIVE_STATUS_ORDER = [
    CorrectiveStatus.IN_BACKLOG,
    CorrectiveStatus.DEV_IN_PROGRESS,
    CorrectiveStatus.IN_TESTING,
    CorrectiveStatus.PRD_DEPLOYMENT,
]


@dataclass(frozen=True)
class ViewFilters:
    """Caller-supplied filters; each view reads only the ones it accepts."""

    app: str | None = None
    month: str | None = None
    year: int | None = None
    start_date: str | None = None
    end_date: str | None = None

    @property
    def filters_application(self) -> bool:
        return self.app is not None and self.app.strip().lower() not in ("", ALL_APPLICATIONS)


def priority_rank(priority: str) -> int:
    match priority:
        case Priority.CRITICAL | Priority.HIGH | Priority.MEDIUM | Priority.LOW:
            return PRIORITY_RANK[Priority(priority)]
        case _:
            return UNKNOWN_PRIORITY_RANK
