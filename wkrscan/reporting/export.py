"""Eksport av filtreringsresultater til CSV og JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Tuple, Union

from ..helpers.lazy_imports import lazy_pandas
from .transformer import FilterResult, to_dataframe

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd

pd = lazy_pandas()

__all__ = ["DownloadPayload", "download_payload", "save_outputs"]

_MIME_TYPES = {"csv": "text/csv", "json": "application/json"}


@dataclass(frozen=True)
class DownloadPayload:
    content: Union[str, dict]
    filename: str
    mime_type: str


def _json_document(result: FilterResult, generated_at: datetime) -> dict:
    document = result.to_dict()
    return {
        "metadata": {
            "generatedAt": generated_at.isoformat(),
            "stats": document["stats"],
        },
        "transactions": document["transactions"],
    }


def download_payload(
    result: FilterResult, fmt: str, *, now: Optional[datetime] = None
) -> DownloadPayload:
    """Lager innhold, filnavn og MIME-type for nedlasting i valgt format."""

    moment = now or datetime.now(timezone.utc)
    stamp = moment.date().isoformat()
    key = fmt.lower()
    if key == "csv":
        content: Union[str, dict] = result.csv
    elif key == "json":
        content = _json_document(result, moment)
    else:
        raise ValueError(f"Ukjent eksportformat: {fmt}")
    return DownloadPayload(
        content=content,
        filename=f"wkr-filtering-{stamp}.{key}",
        mime_type=_MIME_TYPES[key],
    )


def save_outputs(
    result: FilterResult,
    base_path: Union[str, Path],
    tag: str = "wkr",
    *,
    now: Optional[datetime] = None,
) -> Tuple[Path, Path]:
    """Lagrer linjene som CSV (UTF-8-BOM) og hele resultatet som JSON."""

    output_dir = Path(base_path)
    if output_dir.is_file():
        output_dir = output_dir.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    csv_path = output_dir / f"wkr_filtering_{tag}.csv"
    json_path = output_dir / f"wkr_filtering_{tag}.json"

    export_df: "pd.DataFrame" = to_dataframe(result.lines)
    if not export_df.empty:
        export_df["Bedrag"] = export_df["Bedrag"].round(2)
    export_df.to_csv(csv_path, index=False, encoding="utf-8-sig")

    payload: Any = _json_document(result, now or datetime.now(timezone.utc))
    json_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return csv_path, json_path
