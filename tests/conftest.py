import numpy as np
import pandas as pd
import pytest


def logistic_catch(area, year, centre=3.2, slope=5.0, total=10000.0, tl=None):
    """Catch rows whose cumulative biomass follows a logistic in TL.

    One species per trophic-level class; each gets the logistic increment
    of its class.
    """
    if tl is None:
        tl = np.round(np.arange(1.85, 4.95, 0.1), 2)
    edges = np.concatenate([[tl[0] - 0.1], tl])
    cdf = 1.0 / (1.0 + np.exp(-slope * (edges - centre)))
    tonnes = np.diff(cdf) * total
    tonnes[0] += cdf[0] * total
    return pd.DataFrame({
        "area_name": area,
        "year": year,
        "scientific_name": [f"Species tl{t:.2f}" for t in tl],
        "common_name": [f"fish {i}" for i in range(len(tl))],
        "tonnes": tonnes,
        "FoodTroph": tl,
    })


@pytest.fixture
def toy_catch():
    # 3 species in 2 TL classes: (2.0, 2.1] holds 10 t, (3.0, 3.1] holds 30 t
    return pd.DataFrame({
        "area_name": ["Zone A"] * 3,
        "year": [2000] * 3,
        "scientific_name": ["Sardina pilchardus", "Engraulis encrasicolus", "Gadus morhua"],
        "common_name": ["sardine", "anchovy", "cod"],
        "tonnes": [4.0, 6.0, 30.0],
    })


@pytest.fixture
def toy_traits():
    return pd.DataFrame({
        "scientific_name": ["Sardina pilchardus", "Engraulis encrasicolus", "Gadus morhua"],
        "FoodTroph": [2.04, 2.10, 3.05],
        "FoodSeTroph": [0.2, 0.3, 0.5],
    })


@pytest.fixture
def eez_catch():
    frames = [
        logistic_catch("North Sea", 2000, centre=3.0),
        logistic_catch("North Sea", 2010, centre=3.3),
        logistic_catch("Celtic Sea", 2000, centre=3.6, slope=4.0),
    ]
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def eez_files(tmp_path, eez_catch):
    """Catch CSV and matching trait CSV on disk."""
    catch_path = tmp_path / "catch.csv"
    traits_path = tmp_path / "traits.csv"
    eez_catch.drop(columns="FoodTroph").to_csv(catch_path, index=False)
    traits = (eez_catch[["scientific_name", "FoodTroph"]]
              .drop_duplicates("scientific_name")
              .rename(columns={"scientific_name": "Species"}))
    traits["FoodSeTroph"] = 0.3
    traits.to_csv(traits_path, index=False)
    return catch_path, traits_path


@pytest.fixture
def make_catch():
    return logistic_catch
