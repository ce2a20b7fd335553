"""Catch-record loading and validation."""

import logging

import numpy as np
import pandas as pd

from .config import CATCH_COLUMNS

logger = logging.getLogger(__name__)


class CatchDataError(ValueError):
    """Malformed catch input (missing columns or unparseable values)."""


def _bad_rows(mask: pd.Series, limit: int = 5) -> str:
    # +2: header line and 1-based numbering
    rows = [str(i + 2) for i in np.flatnonzero(mask.to_numpy(dtype=bool))[:limit]]
    more = int(mask.sum()) - len(rows)
    return ", ".join(rows) + (f" (+{more} more)" if more > 0 else "")


def validate_catch(df: pd.DataFrame) -> pd.DataFrame:
    """Check columns and coerce types; raise instead of silently dropping.

    Returns a new frame with ``year`` as int, ``tonnes`` as float and the
    name columns stripped. Extra columns are kept.
    """
    missing = [c for c in CATCH_COLUMNS if c not in df.columns]
    if missing:
        raise CatchDataError(f"catch data missing columns: {missing}")

    out = df.reset_index(drop=True).copy()

    tonnes = pd.to_numeric(out["tonnes"], errors="coerce")
    bad = tonnes.isna() | ~np.isfinite(tonnes.fillna(0.0))
    if bad.any():
        raise CatchDataError(f"non-numeric tonnes at line(s) {_bad_rows(bad)}")
    if (tonnes < 0).any():
        raise CatchDataError(f"negative tonnes at line(s) {_bad_rows(tonnes < 0)}")

    year = pd.to_numeric(out["year"], errors="coerce")
    bad = year.isna() | (year != year.round())
    if bad.any():
        raise CatchDataError(f"invalid year at line(s) {_bad_rows(bad)}")

    for col in ("area_name", "scientific_name"):
        names = out[col].astype("string").str.strip()
        bad = names.isna() | (names == "")
        if bad.any():
            raise CatchDataError(f"empty {col} at line(s) {_bad_rows(bad)}")
        out[col] = names.astype(str)

    out["common_name"] = out["common_name"].fillna("").astype(str).str.strip()
    out["tonnes"] = tonnes.astype(float)
    out["year"] = year.astype(int)
    return out


def load_catch(path) -> pd.DataFrame:
    """Read a comma-separated catch file (period decimal) and validate it."""
    df = pd.read_csv(path, sep=",", decimal=".")
    logger.info("Loaded %d catch records from %s", len(df), path)
    return validate_catch(df)
