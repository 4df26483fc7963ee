from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from flipwise.adapters.logging_utils import get_logger
from flipwise.domain.property import PropertyRecord

logger = get_logger(__name__)

# Column aliases seen in exported sales files -> record field
COLUMN_ALIASES = {
    "mls_id": "listing_id",
    "beds": "bedrooms",
    "baths": "bathrooms",
    "sqft": "living_area",
    "lot_acres": "lot_size_acres",
    "garage": "garage_spaces",
    "dom": "days_on_market",
    "lat": "latitude",
    "lng": "longitude",
    "lon": "longitude",
    "sold_price": "close_price",
    "sold_date": "close_date",
}


def read_df(path: str) -> pd.DataFrame:
    if path.endswith(".parquet"):
        return pd.read_parquet(path)
    return pd.read_csv(path)


def write_df(df: pd.DataFrame, path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if path.endswith(".parquet"):
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)


def _listing_id(v: Any) -> str | None:
    if v is None or pd.isna(v):
        return None
    # an id column with gaps is read as float: 101.0 -> "101"
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    s = str(v).strip()
    return s or None


def records_from_frame(df: pd.DataFrame) -> list[PropertyRecord]:
    """
    Turn a sales frame into PropertyRecords. Unknown columns are ignored,
    NaN becomes None, close_date is parsed to a date.

    Rows without a listing id are dropped with a warning.
    """
    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if k in df.columns})
    df = df.copy()

    if "listing_id" in df.columns:
        ids = df["listing_id"].astype(object).map(_listing_id)
        missing = ids.isna()
        if missing.any():
            logger.warning(
                "sales_rows_without_listing_id",
                extra={"context": {"dropped": int(missing.sum()), "rows": int(len(df))}},
            )
        df["listing_id"] = ids
        df = df[~missing].copy()
    if "close_date" in df.columns:
        df["close_date"] = pd.to_datetime(df["close_date"], errors="coerce").dt.date

    df = df.astype(object).where(pd.notna(df), None)

    records: list[PropertyRecord] = []
    for row in df.to_dict(orient="records"):
        for key in ("address", "city", "property_type", "remarks"):
            if row.get(key) is None:
                row.pop(key, None)
        records.append(PropertyRecord.model_validate(row))
    return records
