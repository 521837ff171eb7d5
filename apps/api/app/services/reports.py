"""Outcome collection for operations spanning many objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .errors import PartialBatchFailure

UnitKind = Literal["file", "marker", "delete"]


@dataclass(slots=True)
class UnitOutcome:
    """Result of one unit of work (one put or one delete)."""

    kind: UnitKind
    key: str
    ok: bool
    reason: str | None = None
    error_type: str | None = None
    result: object | None = None

    @classmethod
    def failure(cls, kind: UnitKind, key: str, exc: Exception) -> "UnitOutcome":
        return cls(kind=kind, key=key, ok=False, reason=str(exc), error_type=type(exc).__name__)


@dataclass(slots=True)
class BatchReport:
    """Per-unit outcomes of a multi-file upload, tree upload or folder deletion."""

    succeeded: list[UnitOutcome] = field(default_factory=list)
    failed: list[UnitOutcome] = field(default_factory=list)

    def add(self, outcome: UnitOutcome) -> None:
        if outcome.ok:
            self.succeeded.append(outcome)
        else:
            self.failed.append(outcome)

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.succeeded_count + self.failed_count

    @property
    def files_uploaded(self) -> int:
        return sum(1 for outcome in self.succeeded if outcome.kind == "file")

    def raise_for_failures(self) -> None:
        """Raise ``PartialBatchFailure`` when any unit failed."""

        if self.failed:
            raise PartialBatchFailure(self)


@dataclass(slots=True)
class DeletionReport(BatchReport):
    """Summary of a recursive folder deletion."""

    prefix: str = ""

    @property
    def objects_removed(self) -> int:
        return self.succeeded_count
