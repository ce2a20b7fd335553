import httpx
import numpy as np
import pandas as pd
import pytest

from cumbio.aggregation import cumulative_biomass
from cumbio.config import AnalysisConfig
from cumbio.fishbase import FishBaseClient
from cumbio.pipeline import fit_groups, run_analysis
from cumbio.sigmoid import CurveFitError


def test_fit_groups_orders_tinfl_by_centre(eez_catch):
    points = cumulative_biomass(eez_catch)
    fits = fit_groups(points, npoints=500)

    assert fits.failures == {}
    params = fits.params.set_index(["area_name", "year"])
    assert params.loc[("North Sea", 2000), "TLinfl"] < params.loc[("North Sea", 2010), "TLinfl"]
    assert params.loc[("North Sea", 2010), "TLinfl"] < params.loc[("Celtic Sea", 2000), "TLinfl"]
    assert (params["LowA"] <= params["BIOinfl"]).all()
    assert (params["BIOinfl"] <= 1.0).all()
    assert len(fits.curves) == 3 * 500
    assert set(fits.curves.columns) == {"area_name", "year", "x", "y"}


def _with_degenerate_group(eez_catch, make_catch):
    bad = make_catch("Irish Sea", 2000, tl=np.array([2.05, 3.05]))
    return pd.concat([eez_catch, bad], ignore_index=True)


def test_failed_group_left_undefined(eez_catch, make_catch):
    points = cumulative_biomass(_with_degenerate_group(eez_catch, make_catch))
    fits = fit_groups(points, npoints=200)
    assert list(fits.failures) == [("Irish Sea", 2000)]
    assert "Irish Sea" not in set(fits.params["area_name"])
    assert "Irish Sea" not in set(fits.curves["area_name"])
    assert fits.params[["LowA", "Steepness", "TLinfl", "BIOinfl"]].notna().all().all()


def test_failed_group_can_raise(eez_catch, make_catch):
    points = cumulative_biomass(_with_degenerate_group(eez_catch, make_catch))
    with pytest.raises(CurveFitError, match="Irish Sea/2000"):
        fit_groups(points, npoints=200, on_error="raise")


def test_fit_groups_rejects_unknown_policy(eez_catch):
    with pytest.raises(ValueError):
        fit_groups(cumulative_biomass(eez_catch), on_error="ignore")


def test_run_analysis_with_trait_csv(eez_files):
    catch_path, traits_path = eez_files
    config = AnalysisConfig(catch_path=str(catch_path), traits_path=str(traits_path),
                            areas=("North Sea",), npoints=300)
    result = run_analysis(config)
    assert result.report.dropped_records == 0
    assert sorted(result.fits.params["year"]) == [2000, 2010]
    assert set(result.points["area_name"]) == {"North Sea"}


def test_run_analysis_with_fishbase(eez_files):
    catch_path, traits_path = eez_files
    traits = pd.read_csv(traits_path)
    requests = []

    def handler(request):
        requests.append(request)
        names = request.url.params["species"].split(",")
        data = traits[traits["Species"].isin(names)]
        return httpx.Response(200, json={"data": data.to_dict(orient="records")})

    client = FishBaseClient("https://fishbase.test", transport=httpx.MockTransport(handler))
    config = AnalysisConfig(catch_path=str(catch_path), years=(2000,), npoints=300)
    result = run_analysis(config, client=client)

    assert len(requests) == 1
    assert sorted(result.fits.params["area_name"]) == ["Celtic Sea", "North Sea"]


def test_run_analysis_empty_selection(eez_files):
    catch_path, traits_path = eez_files
    config = AnalysisConfig(catch_path=str(catch_path), traits_path=str(traits_path), years=(1990,))
    with pytest.raises(ValueError, match="no catch records"):
        run_analysis(config)


def test_config_validation():
    with pytest.raises(ValueError):
        AnalysisConfig(catch_path="x.csv", on_error="maybe")
    with pytest.raises(ValueError):
        AnalysisConfig(catch_path="x.csv", domain=(5.0, 1.6))


def test_config_env_overrides(monkeypatch):
    monkeypatch.setenv("CUMBIO_FISHBASE_URL", "https://mirror.test")
    monkeypatch.setenv("CUMBIO_HTTP_TIMEOUT", "5")
    config = AnalysisConfig(catch_path="x.csv")
    assert config.fishbase_url == "https://mirror.test"
    assert config.http_timeout == 5.0
