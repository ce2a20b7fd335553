"""
config.py: analysis constants and run configuration
=====================================================

Trophic-level class limits, the sigmoid evaluation domain, and the
FishBase lookup defaults. ``AnalysisConfig`` gathers one run's settings;
environment variables override the network defaults and CLI flags
override both.
"""

import logging
import os
import sys
from dataclasses import dataclass, field, asdict
from typing import Optional

# ============================================================================
# TROPHIC-LEVEL CLASSES
# ============================================================================

TL_MIN = 0.9                            # lower edge of the first class
TL_MAX = 5.5                            # upper edge of the last class
TL_STEP = 0.1                           # class width

# ============================================================================
# SIGMOID FIT
# ============================================================================

FIT_DOMAIN = (1.6, 5.0)                 # resampling domain for TLinfl / Steepness
LOWA_TL = 1.0                           # where the lower asymptote is read off
UPPER_ASYMPTOTE = 1.0                   # fixed d of the 5-parameter logistic
NPOINTS_SINGLE = 10000                  # single-curve resampling density
NPOINTS_BATCH = 1000                    # per-group density when fitting many
MIN_DISTINCT_TL = 4                     # one per free parameter

# ============================================================================
# TRAIT SOURCE (FishBase ecology table)
# ============================================================================

FISHBASE_URL = "https://fishbase.ropensci.org"
FISHBASE_FIELDS = ("Species", "FoodTroph", "FoodSeTroph")
HTTP_TIMEOUT = 30.0

CATCH_COLUMNS = ("area_name", "year", "scientific_name", "common_name", "tonnes")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass
class AnalysisConfig:
    """Settings for one pipeline run."""

    catch_path: str
    traits_path: Optional[str] = None
    fishbase_url: str = field(
        default_factory=lambda: os.environ.get("CUMBIO_FISHBASE_URL", FISHBASE_URL)
    )
    http_timeout: float = field(
        default_factory=lambda: float(os.environ.get("CUMBIO_HTTP_TIMEOUT", HTTP_TIMEOUT))
    )
    areas: tuple = ()
    years: tuple = ()
    npoints: int = NPOINTS_BATCH
    domain: tuple = FIT_DOMAIN
    on_error: str = "skip"
    overrides: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.on_error not in ("skip", "raise"):
            raise ValueError(f"on_error must be 'skip' or 'raise', got {self.on_error!r}")
        if self.npoints < 3:
            raise ValueError(f"npoints must be >= 3, got {self.npoints}")
        lo, hi = self.domain
        if not lo < hi:
            raise ValueError(f"domain must be increasing, got {self.domain}")

    def to_dict(self) -> dict:
        return asdict(self)


def configure_logging(level="INFO") -> None:
    """Install a single stderr handler on the package logger.

    Repeated calls replace the handler rather than stacking another one.
    """
    logger = logging.getLogger("cumbio")
    logger.setLevel(level if isinstance(level, int) else level.upper())
    for h in [h for h in logger.handlers if getattr(h, "_cumbio", False)]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._cumbio = True
    logger.addHandler(handler)
