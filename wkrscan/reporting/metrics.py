"""Ytelsestall for en klassifiseringskjøring."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict

__all__ = ["RunMetrics", "compute_metrics"]


@dataclass(frozen=True)
class RunMetrics:
    processing_time_ms: float
    lines_per_second: float
    lines_processed: int
    memory_used_delta: int
    peak_memory_delta: int

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def compute_metrics(
    *,
    elapsed_seconds: float,
    lines_processed: int,
    initial_memory: int,
    final_memory: int,
    peak_memory: int,
) -> RunMetrics:
    """Regner ut tid, gjennomstrømning og minneendring for én kjøring."""

    elapsed_ms = max(0.0, elapsed_seconds * 1000)
    lines_per_second = lines_processed / elapsed_seconds if elapsed_seconds > 0 else 0.0
    return RunMetrics(
        processing_time_ms=round(elapsed_ms, 3),
        lines_per_second=round(lines_per_second, 1),
        lines_processed=lines_processed,
        memory_used_delta=final_memory - initial_memory,
        peak_memory_delta=max(peak_memory, final_memory) - initial_memory,
    )
