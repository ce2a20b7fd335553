"""
Command-line entry point.

    cumbio --catch catch.csv --traits-csv traits.csv --outdir out
    cumbio --catch catch.csv --fishbase-url https://... --area "North Sea" --year 2010 2015
    python -m cumbio --catch catch.csv --traits-csv traits.csv --json
"""

import json
import logging
import os
import sys

from .config import FISHBASE_URL, HTTP_TIMEOUT, NPOINTS_BATCH, NPOINTS_SINGLE, AnalysisConfig, configure_logging
from .enrichment import AmbiguousTraitError
from .fishbase import TraitLookupError
from .loader import CatchDataError
from .pipeline import run_analysis
from .sigmoid import CurveFitError, fit_curve

logger = logging.getLogger(__name__)


def _parse_overrides(items, parser):
    overrides = {}
    for item in items or []:
        name, sep, value = item.rpartition("=")
        try:
            overrides[name.strip()] = float(value)
        except ValueError:
            sep = ""
        if not sep or not name.strip():
            parser.error(f"--override expects NAME=TL, got {item!r}")
    return overrides


def write_outputs(result, outdir, plots=True):
    """Write tables, reports and (optionally) figures into ``outdir``."""
    os.makedirs(outdir, exist_ok=True)
    result.points.to_csv(os.path.join(outdir, "cumulative_biomass.csv"), index=False)
    result.fits.curves.to_csv(os.path.join(outdir, "fitted_curves.csv"), index=False)
    result.fits.params.to_csv(os.path.join(outdir, "curve_parameters.csv"), index=False)
    with open(os.path.join(outdir, "enrichment_report.json"), "w") as fh:
        fh.write(result.report.to_json() + "\n")
    failures = [{"area_name": a, "year": y, "error": msg}
                for (a, y), msg in sorted(result.fits.failures.items())]
    with open(os.path.join(outdir, "fit_failures.json"), "w") as fh:
        json.dump(failures, fh, indent=2)
        fh.write("\n")

    if not plots:
        return
    from . import plotting

    for area, pts in result.points.groupby("area_name", sort=True):
        curves = result.fits.curves[result.fits.curves["area_name"] == area]
        slug = "".join(ch if ch.isalnum() else "_" for ch in str(area)).strip("_")
        plotting.plot_curves(pts, curves, by="year", title=f"{area}: cumulative biomass by year",
                             path=os.path.join(outdir, f"curves_{slug}.png"))
    if result.points["area_name"].nunique() > 1:
        for year, pts in result.points.groupby("year", sort=True):
            curves = result.fits.curves[result.fits.curves["year"] == year]
            plotting.plot_curves(pts, curves, by="area_name", title=f"{year}: cumulative biomass by EEZ",
                                 path=os.path.join(outdir, f"curves_{year}.png"))
    if len(result.fits.params):
        plotting.plot_parameter_series(result.fits.params,
                                       path=os.path.join(outdir, "parameter_series.png"))

    # detail plot of every fitted group at single-curve density
    for (area, year), g in result.points.groupby(["area_name", "year"], sort=True):
        if (area, int(year)) in result.fits.failures:
            continue
        fit = fit_curve(g["TL"].to_numpy(), g["ycurv"].to_numpy(), npoints=NPOINTS_SINGLE)
        slug = "".join(ch if ch.isalnum() else "_" for ch in str(area)).strip("_")
        plotting.plot_single_curve(g["TL"], g["ycurv"], fit, title=f"{area} {year}",
                                   path=os.path.join(outdir, f"curve_{slug}_{year}.png"))


def print_summary(result):
    r = result.report
    print("=" * 72)
    print("  CUMULATIVE BIOMASS CURVES")
    print("=" * 72)
    print(f"  Catch records    : {r.n_records}")
    print(f"  Species          : {r.n_species} ({r.n_species_with_tl} with trophic level)")
    if r.dropped_records:
        print(f"  Dropped          : {r.dropped_records} records, {r.dropped_tonnes:.1f} t")
        print(f"                     no TL: {', '.join(r.species_without_tl)}")
    if r.resolved_duplicates:
        print(f"  Duplicate traits : {', '.join(r.resolved_duplicates)}")
    print("-" * 72)
    print(f"{'Area':<24} {'Year':>5} {'LowA':>8} {'Steep':>8} {'TLinfl':>8} {'BIOinfl':>8} {'R²':>7}")
    for row in result.fits.params.itertuples(index=False):
        print(f"{str(row.area_name)[:24]:<24} {row.year:5d} {row.LowA:8.4f} {row.Steepness:8.4f} "
              f"{row.TLinfl:8.4f} {row.BIOinfl:8.4f} {row.r2:7.4f}")
    for (area, year), msg in sorted(result.fits.failures.items()):
        print(f"{str(area)[:24]:<24} {year:5d}  ⚠ fit failed: {msg}")
    print("=" * 72)


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(
        prog="cumbio",
        description="Cumulative biomass by trophic level: sigmoid fits per EEZ and year",
        epilog="Example: cumbio --catch catch.csv --traits-csv traits.csv --outdir out",
    )
    parser.add_argument("--catch", required=True, help="Catch CSV (area_name, year, scientific_name, common_name, tonnes)")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--traits-csv", default=None, help="Exported trait table instead of a FishBase lookup")
    source.add_argument("--fishbase-url", default=None,
                        help=f"FishBase API base URL (default: $CUMBIO_FISHBASE_URL or {FISHBASE_URL})")
    parser.add_argument("--timeout", type=float, default=None, help=f"HTTP timeout in s (default: {HTTP_TIMEOUT})")
    parser.add_argument("--area", nargs="+", default=(), help="Only these area_name values")
    parser.add_argument("--year", nargs="+", type=int, default=(), help="Only these years")
    parser.add_argument("--npoints", type=int, default=NPOINTS_BATCH, help="Resampling points per fitted curve")
    parser.add_argument("--on-error", choices=("skip", "raise"), default="skip",
                        help="What a failing group fit does (default: skip)")
    parser.add_argument("--override", action="append", default=[], metavar="NAME=TL",
                        help="Trophic level to use for a species with ambiguous trait rows")
    parser.add_argument("--outdir", default=None, help="Write tables and figures here")
    parser.add_argument("--no-plots", action="store_true", help="Skip figures when writing --outdir")
    parser.add_argument("--json", action="store_true", help="Print curve parameters as JSON")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    config_kwargs = {}
    if args.fishbase_url:
        config_kwargs["fishbase_url"] = args.fishbase_url
    if args.timeout is not None:
        config_kwargs["http_timeout"] = args.timeout
    try:
        config = AnalysisConfig(
            catch_path=args.catch,
            traits_path=args.traits_csv,
            areas=tuple(args.area),
            years=tuple(args.year),
            npoints=args.npoints,
            on_error=args.on_error,
            overrides=_parse_overrides(args.override, parser),
            **config_kwargs,
        )
        result = run_analysis(config)
    except (CatchDataError, AmbiguousTraitError, TraitLookupError, CurveFitError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1

    if args.outdir:
        write_outputs(result, args.outdir, plots=not args.no_plots)
        logger.info("Wrote outputs to %s", args.outdir)

    if args.json:
        print(result.fits.params.to_json(orient="records", indent=2))
    else:
        print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
