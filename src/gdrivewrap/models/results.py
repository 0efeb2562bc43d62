"""Result models for batch and backup operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(slots=True)
class BatchItemResult:
    """Outcome for one item of a batch; a failed item never stops the batch."""

    name: str
    success: bool

    file_id: Optional[str] = None
    local_path: Optional[str] = None

    error_type: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, name: str, exc: BaseException) -> "BatchItemResult":
        return cls(
            name=name,
            success=False,
            error_type=exc.__class__.__name__,
            error=str(exc),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize(results: list[BatchItemResult]) -> dict[str, int]:
    summary: dict[str, int] = {"success": 0, "failed": 0}
    for r in results:
        summary["success" if r.success else "failed"] += 1
    return summary
