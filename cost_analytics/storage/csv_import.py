"""CSV input parser for billing exports."""

import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from .models import CostRecord

logger = logging.getLogger(__name__)

# Accepted column names per field, matched after lower-casing and stripping
COLUMN_MAPPINGS = {
    "project_id": ["project_id", "project.id", "project", "projectid"],
    "service_name": ["service_name", "service.description", "service", "servicename"],
    "usage_date": ["usage_date", "usage_start_time", "date", "usagedate"],
    "cost": ["cost", "gross_cost", "amount"],
    "credits": ["credits", "total_credits", "credit"],
}

REQUIRED_FIELDS = ("project_id", "service_name", "usage_date", "cost")


def load_cost_records_csv(file_path: Union[str, Path]) -> List[CostRecord]:
    """Parse a billing export CSV into cost records.

    All columns are read as text so identifiers keep leading zeros.
    Timestamps are converted to UTC and truncated to their calendar date.
    A missing credits column or a blank credits cell counts as zero credits.

    Args:
        file_path: Path to the CSV file

    Returns:
        Cost records in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a required column is missing, an identifier is blank,
            or a date or amount cannot be parsed as a finite value
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    df = pd.read_csv(path, dtype=str)
    df.columns = [str(c).lower().strip() for c in df.columns]
    column_map = _map_columns(list(df.columns))

    missing = [field for field in REQUIRED_FIELDS if field not in column_map]
    if missing:
        raise ValueError(f"Missing required columns in {path.name}: {missing}")

    project_ids = _identifiers(df[column_map["project_id"]], "project_id", path)
    service_names = _identifiers(df[column_map["service_name"]], "service_name", path)

    try:
        timestamps = pd.to_datetime(df[column_map["usage_date"]], utc=True)
        costs = pd.to_numeric(df[column_map["cost"]])
        if "credits" in column_map:
            credits = pd.to_numeric(df[column_map["credits"]]).fillna(0.0)
        else:
            credits = pd.Series(0.0, index=df.index)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid value in {path.name}: {e}") from e

    _require_rows(timestamps.notna(), "usage_date", path)
    _require_rows(_finite(costs), "cost", path)
    _require_rows(_finite(credits), "credits", path)
    usage_dates = timestamps.dt.date

    records = [
        CostRecord(
            project_id=project_ids[idx],
            service_name=service_names[idx],
            usage_date=usage_dates[idx],
            cost=float(costs[idx]),
            credits=float(credits[idx]),
        )
        for idx in df.index
    ]

    logger.info("Parsed %d cost records from %s", len(records), path.name)
    return records


def _identifiers(column: pd.Series, field: str, path: Path) -> pd.Series:
    """Strip identifier text and reject blank cells."""
    values = column.str.strip()
    _require_rows(values.notna() & (values != ""), field, path)
    return values


def _finite(values: pd.Series) -> pd.Series:
    return values.notna() & (values.abs() != float("inf"))


def _require_rows(valid: pd.Series, field: str, path: Path) -> None:
    if not valid.all():
        # Report 1-based data rows, not counting the header
        rows = [int(idx) + 1 for idx in valid.index[~valid]]
        raise ValueError(f"Invalid value in {path.name}: {field} in rows {rows}")


def _map_columns(columns: List[str]) -> Dict[str, str]:
    """Map actual column names to standard field names."""
    column_map: Dict[str, str] = {}
    for field, aliases in COLUMN_MAPPINGS.items():
        for alias in aliases:
            if alias in columns:
                column_map[field] = alias
                break
    return column_map
