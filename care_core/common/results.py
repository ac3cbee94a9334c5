# care_core/common/results.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class ItemResult:
    """
    Outcome of one unit of best-effort work (one checklist item, one medication, ...).

    A linked result points at an artifact an earlier pass already wrote.
    Failures carry the exception *type name* only. Messages may echo
    user-entered text and are never stored here.
    """
    key: str
    ok: bool
    artifact_id: Optional[UUID] = None
    skipped: bool = False
    linked: bool = False
    error_type: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def created(cls, key: str, artifact_id: UUID) -> "ItemResult":
        return cls(key=key, ok=True, artifact_id=artifact_id)

    @classmethod
    def link(cls, key: str, artifact_id: UUID, reason: str) -> "ItemResult":
        return cls(key=key, ok=True, artifact_id=artifact_id, linked=True, reason=reason)

    @classmethod
    def skip(cls, key: str, reason: str) -> "ItemResult":
        return cls(key=key, ok=True, skipped=True, reason=reason)

    @classmethod
    def failed(cls, key: str, exc: BaseException) -> "ItemResult":
        return cls(key=key, ok=False, error_type=type(exc).__name__)


@dataclass
class GeneratorReport:
    """
    Accumulator for one generator pass.
    attempted = items that reached a write (skips and links are not attempts).
    """
    name: str
    results: list[ItemResult] = field(default_factory=list)

    def add(self, result: ItemResult) -> None:
        self.results.append(result)

    @property
    def created_ids(self) -> list[UUID]:
        return [r.artifact_id for r in self.results if r.ok and not r.linked and r.artifact_id is not None]

    @property
    def artifact_ids(self) -> list[UUID]:
        # created and linked, in input order
        return [r.artifact_id for r in self.results if r.ok and r.artifact_id is not None]

    @property
    def failures(self) -> list[ItemResult]:
        return [r for r in self.results if not r.ok]

    @property
    def skipped(self) -> list[ItemResult]:
        return [r for r in self.results if r.skipped]

    @property
    def linked(self) -> list[ItemResult]:
        return [r for r in self.results if r.linked]

    @property
    def attempted(self) -> int:
        return len([r for r in self.results if not r.skipped and not r.linked])

    @property
    def created(self) -> int:
        return len(self.created_ids)

    def summary(self) -> dict:
        return {
            "generator": self.name,
            "attempted": self.attempted,
            "created": self.created,
            "linked": len(self.linked),
            "skipped": len(self.skipped),
            "failed": len(self.failures),
        }
