import pandas as pd
import pytest

from cumbio.loader import CatchDataError, load_catch, validate_catch


def _write(tmp_path, text):
    path = tmp_path / "catch.csv"
    path.write_text(text)
    return path


def test_load_catch_types(tmp_path):
    path = _write(tmp_path, (
        "area_name,year,scientific_name,common_name,tonnes\n"
        "North Sea,2001,Gadus morhua,Atlantic cod,12.5\n"
        "North Sea,2001, Clupea harengus ,Atlantic herring,3\n"
    ))
    df = load_catch(path)
    assert list(df["tonnes"]) == [12.5, 3.0]
    assert df["year"].dtype.kind == "i"
    assert df["scientific_name"].iloc[1] == "Clupea harengus"


def test_missing_columns():
    df = pd.DataFrame({"area_name": ["A"], "year": [2000], "tonnes": [1.0]})
    with pytest.raises(CatchDataError, match="scientific_name"):
        validate_catch(df)


def test_non_numeric_tonnes_rejected(tmp_path):
    path = _write(tmp_path, (
        "area_name,year,scientific_name,common_name,tonnes\n"
        "North Sea,2001,Gadus morhua,cod,12.5\n"
        "North Sea,2001,Clupea harengus,herring,lots\n"
    ))
    with pytest.raises(CatchDataError, match="line\\(s\\) 3"):
        load_catch(path)


def test_negative_tonnes_rejected(toy_catch):
    toy_catch.loc[1, "tonnes"] = -1.0
    with pytest.raises(CatchDataError, match="negative"):
        validate_catch(toy_catch)


def test_fractional_year_rejected(toy_catch):
    toy_catch["year"] = [2000, 2000.5, 2000]
    with pytest.raises(CatchDataError, match="year"):
        validate_catch(toy_catch)


def test_empty_species_rejected(toy_catch):
    toy_catch.loc[0, "scientific_name"] = "  "
    with pytest.raises(CatchDataError, match="scientific_name"):
        validate_catch(toy_catch)


def test_validate_does_not_mutate_input(toy_catch):
    before = toy_catch.copy()
    validate_catch(toy_catch)
    pd.testing.assert_frame_equal(toy_catch, before)
