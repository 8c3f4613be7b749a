from __future__ import annotations

import logging
import math
from pathlib import Path

import pandas as pd

from mediascope_data.records import COLUMN_FIELDS, FIELD_KINDS, Record


LOGGER = logging.getLogger(__name__)

TRUE_TEXT = "Yes"


class RecordLoadError(ValueError):
    pass


def load_records(path: str | Path) -> tuple[Record, ...]:
    """Parse a column-labeled CSV file into immutable records.

    Numeric columns coerce text to float; malformed numbers become NaN and are
    left for the aggregation layer to skip.
    """

    source = Path(path)
    if not source.exists():
        raise RecordLoadError(f"dataset not found: {source}")
    frame = pd.read_csv(source, dtype=str, keep_default_na=False)
    return records_from_frame(frame, source_name=source.name)


def records_from_frame(frame: pd.DataFrame, *, source_name: str | None = None) -> tuple[Record, ...]:
    missing = [col for col in COLUMN_FIELDS if col not in frame.columns]
    if missing:
        raise RecordLoadError(f"missing columns: {', '.join(missing)}")

    frame = frame.loc[:, list(COLUMN_FIELDS)].copy()
    for col in COLUMN_FIELDS:
        frame[col] = frame[col].astype("string").str.strip()
    blank = frame.isna() | frame.fillna("").eq("")
    blank_rows = blank.any(axis=1).to_numpy(dtype=bool)
    if blank_rows.any():
        first_row = int(blank_rows.nonzero()[0][0])
        raise RecordLoadError(f"row {first_row} has empty fields")

    for col, attr in COLUMN_FIELDS.items():
        if FIELD_KINDS[attr] == "numeric":
            frame[col] = pd.to_numeric(frame[col], errors="coerce")

    out: list[Record] = []
    invalid_numbers = 0
    for row in frame.itertuples(index=False, name=None):
        values = dict(zip(COLUMN_FIELDS.values(), row, strict=True))
        for attr, kind in FIELD_KINDS.items():
            raw = values[attr]
            if kind == "numeric":
                num = float(raw) if raw is not None and not pd.isna(raw) else math.nan
                if math.isnan(num):
                    invalid_numbers += 1
                values[attr] = num
            elif kind == "boolean":
                values[attr] = str(raw) == TRUE_TEXT
            else:
                values[attr] = str(raw)
        sid = values["student_id"]
        values["student_id"] = int(sid) if not math.isnan(sid) else -1
        out.append(Record(**values))

    if invalid_numbers:
        LOGGER.warning("%s: %d numeric cells could not be parsed", source_name or "records", invalid_numbers)
    LOGGER.info("loaded %d records from %s", len(out), source_name or "frame")
    return tuple(out)
