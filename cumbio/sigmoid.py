"""
Five-parameter logistic fit of cumulative-biomass curves
==========================================================

Model (L.5 parameterisation):

    f(x) = c + (d - c) / (1 + exp(b·(x - e)))^f

  b : slope (≤ 0 → curve rises with TL)
  c : lower asymptote
  d : upper asymptote, FIXED at 1 (relative cumulative biomass tops out at 1)
  e : location
  f : asymmetry (f = 1 → symmetric logistic, e is then the inflection)

Summary parameters, read off a dense resampling of the fit over FIT_DOMAIN:

  TLinfl    : x one sample BEFORE the largest forward difference
  Steepness : largest forward difference / step
  BIOinfl   : f(TLinfl)
  LowA      : f(1.0)
"""

import json
import warnings
from dataclasses import dataclass, field, asdict

import numpy as np
from scipy.optimize import OptimizeWarning, curve_fit

from .config import FIT_DOMAIN, LOWA_TL, MIN_DISTINCT_TL, NPOINTS_SINGLE, UPPER_ASYMPTOTE


class CurveFitError(ValueError):
    """The sigmoid could not be fitted to a curve."""


# ============================================================
# MODEL
# ============================================================

def logistic5(x, b, c, d, e, f):
    """Five-parameter logistic; exp() overflow saturates to the asymptote c."""
    x = np.asarray(x, dtype=float)
    with np.errstate(over="ignore"):
        z = np.exp(b * (x - e))
        return c + (d - c) / (1.0 + z) ** f


def _fixed_d(x, b, c, e, f):
    return logistic5(x, b, c, UPPER_ASYMPTOTE, e, f)


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass
class CurveParameters:
    """Shape summary of one fitted cumulative-biomass curve."""

    LowA: float
    Steepness: float
    TLinfl: float
    BIOinfl: float

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self, indent=2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class CurveFit:
    """Fitted coefficients, resampled curve and summary parameters."""

    coef: dict                       # b, c, d, e, f
    params: CurveParameters
    x: np.ndarray = field(repr=False)
    y: np.ndarray = field(repr=False)
    r2: float = float("nan")
    rmse: float = float("nan")

    def predict(self, x):
        return logistic5(x, **self.coef)


# ============================================================
# FITTING
# ============================================================

def _check_input(x, y):
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape or x.ndim != 1:
        raise CurveFitError(f"x and y must be 1-D and the same length, got {x.shape} and {y.shape}")
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise CurveFitError("x and y must be finite")
    n_distinct = len(np.unique(x))
    if n_distinct < MIN_DISTINCT_TL:
        raise CurveFitError(f"need at least {MIN_DISTINCT_TL} distinct TL values, got {n_distinct}")
    if np.ptp(y) == 0:
        raise CurveFitError("y is constant; no sigmoid to fit")
    return x, y


def _initial_guess(x, y):
    order = np.argsort(x)
    xs, ys = x[order], y[order]
    c0 = min(float(ys.min()), 0.99)
    # location: first x where the curve passes halfway between c0 and 1
    half = c0 + (UPPER_ASYMPTOTE - c0) / 2
    above = np.flatnonzero(ys >= half)
    e0 = float(xs[above[0]]) if len(above) else float(np.median(xs))
    b0 = -4.0 / max(float(np.ptp(xs)), 0.1)
    return [b0, c0, e0, 1.0]


def summarize_curve(coef, npoints=NPOINTS_SINGLE, domain=FIT_DOMAIN):
    """Resample a fitted curve and derive LowA, Steepness, TLinfl, BIOinfl.

    Returns ``(x, y, CurveParameters)``.
    """
    if npoints < 3:
        raise ValueError(f"npoints must be >= 3, got {npoints}")
    lo, hi = domain
    x = np.linspace(lo, hi, npoints)
    y = logistic5(x, **coef)
    step = x[1] - x[0]
    slope = np.diff(y) / step

    i_max = int(np.argmax(slope))
    tl_infl = float(x[max(i_max - 1, 0)])

    params = CurveParameters(
        LowA=float(logistic5(LOWA_TL, **coef)),
        Steepness=float(slope[i_max]),
        TLinfl=tl_infl,
        BIOinfl=float(logistic5(tl_infl, **coef)),
    )
    return x, y, params


def fit_curve(x, y, npoints=NPOINTS_SINGLE, domain=FIT_DOMAIN, maxfev=20000) -> CurveFit:
    """Fit the 5-parameter logistic (d = 1) to one cumulative-biomass curve.

    Parameters
    ----------
    x : trophic-level class midpoints
    y : relative cumulative biomass at those classes
    npoints : resampling density over ``domain``
    domain : (lo, hi) TL range for the resampled curve

    Raises
    ------
    CurveFitError on degenerate input or when the solver does not converge.
    """
    x, y = _check_input(x, y)
    p0 = _initial_guess(x, y)
    bounds = ([-np.inf, -np.inf, -np.inf, 1e-6],
              [0.0, UPPER_ASYMPTOTE - 1e-9, np.inf, np.inf])

    # exactly MIN_DISTINCT_TL points leave no residual dof for the covariance
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", OptimizeWarning)
        try:
            popt, _ = curve_fit(_fixed_d, x, y, p0=p0, bounds=bounds, maxfev=maxfev)
        except (RuntimeError, ValueError) as e:
            raise CurveFitError(f"sigmoid fit did not converge: {e}") from e

    if not np.all(np.isfinite(popt)):
        raise CurveFitError(f"sigmoid fit returned non-finite coefficients {popt}")

    b, c, e, f = (float(v) for v in popt)
    coef = {"b": b, "c": c, "d": UPPER_ASYMPTOTE, "e": e, "f": f}

    pred = logistic5(x, **coef)
    ss_res = np.sum((y - pred)**2)
    ss_tot = np.sum((y - np.mean(y))**2)
    r2 = 1 - ss_res / max(ss_tot, 1e-30)
    rmse = np.sqrt(np.mean((y - pred)**2))

    xs, ys, params = summarize_curve(coef, npoints, domain)
    return CurveFit(coef=coef, params=params, x=xs, y=ys,
                    r2=float(r2), rmse=float(rmse))
