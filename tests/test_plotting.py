import matplotlib.pyplot as plt
import pandas as pd

from cumbio import plotting
from cumbio.aggregation import cumulative_biomass
from cumbio.pipeline import fit_groups
from cumbio.sigmoid import fit_curve


def _fits(eez_catch):
    points = cumulative_biomass(eez_catch)
    return points, fit_groups(points, npoints=200)


def test_plot_curves_writes_png(tmp_path, eez_catch):
    points, fits = _fits(eez_catch)
    path = tmp_path / "curves.png"
    plotting.plot_curves(points, fits.curves, path=path)
    assert path.stat().st_size > 0


def test_plot_curves_without_fits_returns_figure(eez_catch):
    points = cumulative_biomass(eez_catch)
    fig = plotting.plot_curves(points, pd.DataFrame(columns=["area_name", "year", "x", "y"]))
    labels = fig.axes[0].get_legend_handles_labels()[1]
    assert all(label.endswith("(no fit)") for label in labels)
    plt.close(fig)


def test_plot_single_curve(tmp_path, eez_catch):
    g = cumulative_biomass(eez_catch).query("area_name == 'North Sea' and year == 2000")
    fit = fit_curve(g["TL"], g["ycurv"], npoints=1000)
    path = tmp_path / "single.png"
    plotting.plot_single_curve(g["TL"], g["ycurv"], fit, path=path)
    assert path.exists()


def test_plot_parameter_series(tmp_path, eez_catch):
    _, fits = _fits(eez_catch)
    fig = plotting.plot_parameter_series(fits.params)
    assert len(fig.axes) == 4
    assert fig.axes[0].get_title() == plotting.PARAM_LABELS["LowA"]
    plt.close(fig)
