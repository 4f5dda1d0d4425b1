"""Per-step outcomes for soft failures, exposed to callers as diagnostics."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class OutcomeStatus(str, Enum):
    APPLIED = "applied"        # step changed something
    UNCHANGED = "unchanged"    # nothing to do
    SKIPPED = "skipped"        # step could not run; see reason


@dataclass(frozen=True)
class StepOutcome:
    step: str
    status: OutcomeStatus
    reason: Optional[str] = None

    @classmethod
    def applied(cls, step: str) -> "StepOutcome":
        return cls(step, OutcomeStatus.APPLIED)

    @classmethod
    def unchanged(cls, step: str) -> "StepOutcome":
        return cls(step, OutcomeStatus.UNCHANGED)

    @classmethod
    def skipped(cls, step: str, reason: str) -> "StepOutcome":
        return cls(step, OutcomeStatus.SKIPPED, reason)

    @property
    def ok(self) -> bool:
        return self.status != OutcomeStatus.SKIPPED


Diagnostics = List[StepOutcome]


def record(diagnostics: Optional[Diagnostics], outcome: StepOutcome) -> StepOutcome:
    """Append to diagnostics when the caller asked for them."""
    if diagnostics is not None:
        diagnostics.append(outcome)
    return outcome
