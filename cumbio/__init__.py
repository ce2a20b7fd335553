"""Cumulative biomass by trophic level: binning, sigmoid fits, and curve parameters."""

from .aggregation import bin_trophic_level, cumulative_biomass
from .enrichment import AmbiguousTraitError, EnrichmentReport, enrich_catch, resolve_duplicate_traits
from .fishbase import FishBaseClient, TraitLookupError, load_traits_csv
from .loader import CatchDataError, load_catch
from .pipeline import AnalysisResult, GroupFits, fit_groups, run_analysis
from .sigmoid import CurveFit, CurveFitError, CurveParameters, fit_curve, logistic5

__version__ = "1.0.0"

__all__ = [
    "AmbiguousTraitError",
    "AnalysisResult",
    "CatchDataError",
    "CurveFit",
    "CurveFitError",
    "CurveParameters",
    "EnrichmentReport",
    "FishBaseClient",
    "GroupFits",
    "TraitLookupError",
    "bin_trophic_level",
    "cumulative_biomass",
    "enrich_catch",
    "fit_curve",
    "fit_groups",
    "load_catch",
    "load_traits_csv",
    "logistic5",
    "resolve_duplicate_traits",
    "run_analysis",
]
