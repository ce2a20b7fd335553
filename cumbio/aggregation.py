"""
Cumulative biomass by trophic-level class
==========================================

TL → class (left-open, right-closed, width TL_STEP over [TL_MIN, TL_MAX],
labelled by midpoint) → B = Σ tonnes per (area_name, year, TL)
→ ycum = running Σ B in ascending TL → ycurv = ycum / max(ycum).
"""

import logging

import numpy as np
import pandas as pd

from .config import TL_MAX, TL_MIN, TL_STEP

logger = logging.getLogger(__name__)

GROUP_KEYS = ["area_name", "year"]


def tl_breaks(tl_min=TL_MIN, tl_max=TL_MAX, step=TL_STEP) -> np.ndarray:
    n = int(round((tl_max - tl_min) / step))
    # rounded so that 1.0 is 1.0 and not 0.9999999999999999
    return np.round(tl_min + step * np.arange(n + 1), 10)


def tl_midpoints(tl_min=TL_MIN, tl_max=TL_MAX, step=TL_STEP) -> np.ndarray:
    b = tl_breaks(tl_min, tl_max, step)
    return np.round((b[:-1] + b[1:]) / 2, 10)


def bin_trophic_level(tl, tl_min=TL_MIN, tl_max=TL_MAX, step=TL_STEP) -> pd.Series:
    """Map trophic levels to their class midpoint.

    Values outside (tl_min, tl_max] become NaN. Applying this to its own
    output returns the same classes.
    """
    tl = pd.Series(tl, dtype=float)
    classes = pd.cut(tl, bins=tl_breaks(tl_min, tl_max, step),
                     labels=tl_midpoints(tl_min, tl_max, step), right=True)
    return classes.astype(float)


def cumulative_biomass(enriched: pd.DataFrame, tl_col="FoodTroph",
                       tl_min=TL_MIN, tl_max=TL_MAX, step=TL_STEP) -> pd.DataFrame:
    """Build the relative cumulative-biomass curve of every (area_name, year).

    Returns columns area_name, year, TL, B, ycum, ycurv sorted by group then
    TL. Only classes that hold catch appear.
    """
    df = enriched[GROUP_KEYS + [tl_col, "tonnes"]].copy()
    df["TL"] = bin_trophic_level(df[tl_col], tl_min, tl_max, step)

    outside = df["TL"].isna()
    if outside.any():
        logger.warning("%d records with trophic level outside (%.1f, %.1f] left unbinned",
                       int(outside.sum()), tl_min, tl_max)
        df = df[~outside]

    points = (df.groupby(GROUP_KEYS + ["TL"], sort=True)["tonnes"]
                .sum()
                .rename("B")
                .reset_index())
    points = points.sort_values(GROUP_KEYS + ["TL"]).reset_index(drop=True)
    points["ycum"] = points.groupby(GROUP_KEYS)["B"].cumsum()

    total = points.groupby(GROUP_KEYS)["ycum"].transform("max")
    empty = total <= 0
    if empty.any():
        dead = points.loc[empty, GROUP_KEYS].drop_duplicates()
        logger.warning("Dropping %d group(s) with zero total biomass: %s", len(dead),
                       ", ".join(f"{a}/{y}" for a, y in dead.itertuples(index=False)))
        points, total = points[~empty].copy(), total[~empty]

    points["ycurv"] = points["ycum"] / total
    return points.reset_index(drop=True)


def iter_groups(points: pd.DataFrame):
    """Yield ``((area_name, year), x, y)`` for each cumulative curve."""
    for key, g in points.groupby(GROUP_KEYS, sort=True):
        yield key, g["TL"].to_numpy(dtype=float), g["ycurv"].to_numpy(dtype=float)
