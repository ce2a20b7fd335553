"""
Pipeline: load → enrich → cumulate → fit, one (area_name, year) at a time.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .aggregation import GROUP_KEYS, cumulative_biomass, iter_groups
from .config import FIT_DOMAIN, NPOINTS_BATCH, AnalysisConfig
from .enrichment import EnrichmentReport, lookup_and_enrich
from .fishbase import FishBaseClient, load_traits_csv
from .loader import load_catch
from .sigmoid import CurveFitError, fit_curve

logger = logging.getLogger(__name__)


@dataclass
class GroupFits:
    """Per-group fits. Failed groups appear only in ``failures``."""

    curves: pd.DataFrame             # area_name, year, x, y
    params: pd.DataFrame             # area_name, year, LowA, Steepness, TLinfl, BIOinfl, r2, rmse, b, c, d, e, f
    failures: Dict[Tuple[str, int], str] = field(default_factory=dict)


@dataclass
class AnalysisResult:
    enriched: pd.DataFrame
    report: EnrichmentReport
    points: pd.DataFrame
    fits: GroupFits


def fit_groups(points: pd.DataFrame, npoints=NPOINTS_BATCH, domain=FIT_DOMAIN,
               on_error="skip") -> GroupFits:
    """Fit every cumulative curve in ``points``.

    ``on_error="skip"`` logs and records a failing group and carries on;
    ``"raise"`` re-raises its CurveFitError.
    """
    if on_error not in ("skip", "raise"):
        raise ValueError(f"on_error must be 'skip' or 'raise', got {on_error!r}")

    curves, rows, failures = [], [], {}
    for (area, year), x, y in iter_groups(points):
        try:
            fit = fit_curve(x, y, npoints=npoints, domain=domain)
        except CurveFitError as e:
            if on_error == "raise":
                raise CurveFitError(f"{area}/{year}: {e}") from e
            logger.warning("Fit failed for %s/%s: %s", area, year, e)
            failures[(area, int(year))] = str(e)
            continue

        curves.append(pd.DataFrame({"area_name": area, "year": int(year),
                                    "x": fit.x, "y": fit.y}))
        rows.append({"area_name": area, "year": int(year),
                     **fit.params.to_dict(), "r2": fit.r2, "rmse": fit.rmse,
                     **fit.coef})

    n_groups = len(rows) + len(failures)
    logger.info("Fitted %d/%d curves", len(rows), n_groups)

    curve_cols = GROUP_KEYS + ["x", "y"]
    param_cols = GROUP_KEYS + ["LowA", "Steepness", "TLinfl", "BIOinfl",
                               "r2", "rmse", "b", "c", "d", "e", "f"]
    return GroupFits(
        curves=pd.concat(curves, ignore_index=True) if curves else pd.DataFrame(columns=curve_cols),
        params=pd.DataFrame(rows, columns=param_cols),
        failures=failures,
    )


def _select(catch: pd.DataFrame, areas, years) -> pd.DataFrame:
    mask = np.ones(len(catch), dtype=bool)
    if areas:
        mask &= catch["area_name"].isin(list(areas)).to_numpy()
    if years:
        mask &= catch["year"].isin([int(y) for y in years]).to_numpy()
    selected = catch[mask].reset_index(drop=True)
    if selected.empty:
        raise ValueError(f"no catch records for areas={list(areas)} years={list(years)}")
    return selected


def run_analysis(config: AnalysisConfig, client: Optional[FishBaseClient] = None) -> AnalysisResult:
    """Run the whole analysis described by ``config``.

    Traits come from ``config.traits_path`` when set, else from FishBase
    (``client`` or one built from the config).
    """
    catch = _select(load_catch(config.catch_path), config.areas, config.years)

    if config.traits_path:
        traits = load_traits_csv(config.traits_path)
        fetch = lambda names: traits[traits["scientific_name"].isin(names)]
    else:
        client = client or FishBaseClient(config.fishbase_url, timeout=config.http_timeout)
        fetch = client.ecology

    enriched, report = lookup_and_enrich(catch, fetch, config.overrides)
    points = cumulative_biomass(enriched)
    fits = fit_groups(points, npoints=config.npoints, domain=config.domain,
                      on_error=config.on_error)
    return AnalysisResult(enriched=enriched, report=report, points=points, fits=fits)
