"""Rapportformater for klassifiserte linjer."""

from .export import DownloadPayload, download_payload, save_outputs
from .metrics import RunMetrics, compute_metrics
from .transformer import (
    FilterResult,
    FilterStats,
    build_filter_result,
    compute_stats,
    summary_text,
    to_csv,
    to_dataframe,
    to_rows,
    to_table,
)

__all__ = [
    "DownloadPayload",
    "FilterResult",
    "FilterStats",
    "RunMetrics",
    "build_filter_result",
    "compute_metrics",
    "compute_stats",
    "download_payload",
    "save_outputs",
    "summary_text",
    "to_csv",
    "to_dataframe",
    "to_rows",
    "to_table",
]
