"""Read-only views of per-source sequencing state."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SourceSnapshot(BaseModel):
    """Point-in-time view of one source's counter and reorder buffer.

    Produced under the source lock, so the fields are mutually consistent.
    ``forwarded_count`` always equals ``next_expected`` because the counter
    advances by exactly one per forwarded item.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str
    next_expected: int = 0
    pending_nonces: list[int] = Field(default_factory=list)

    @property
    def forwarded_count(self) -> int:
        return self.next_expected

    @property
    def pending_count(self) -> int:
        return len(self.pending_nonces)

    @property
    def first_gap(self) -> int | None:
        """The nonce the source is waiting on, or ``None`` if nothing is held."""
        return self.next_expected if self.pending_nonces else None
