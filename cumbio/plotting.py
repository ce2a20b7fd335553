"""
Figures for cumulative-biomass curves
======================================

  plot_curves            : raw points + fitted sigmoids, one line per group
  plot_single_curve      : one group with TLinfl / BIOinfl / LowA marked
  plot_parameter_series  : LowA, Steepness, TLinfl, BIOinfl vs year per area
"""

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from .aggregation import GROUP_KEYS
from .config import LOWA_TL

# ── Style ────────────────────────────────────────────────
STYLE = {
    'font.family': 'sans-serif',
    'font.size': 10,
    'axes.labelsize': 11,
    'axes.titlesize': 12,
    'legend.fontsize': 8,
    'savefig.dpi': 200,
    'savefig.bbox': 'tight',
}

C_RAW = '#4477AA'
C_FIT = '#CC3311'
C_MARK = '#228833'

PARAM_LABELS = {
    'LowA': 'Lower asymptote (LowA)',
    'Steepness': 'Steepness (max slope)',
    'TLinfl': 'TL at inflection (TLinfl)',
    'BIOinfl': 'Cum. biomass at inflection (BIOinfl)',
}


def _label(key):
    area, year = key
    return f"{area} {year}"


def _save(fig, path):
    if path is not None:
        fig.savefig(path)
        plt.close(fig)
    return fig


def plot_curves(points, curves, by="year", title=None, path=None):
    """Overlay every (area_name, year) curve: observed ycurv and fitted line.

    ``by`` picks the colour key ("year" or "area_name"); groups without a
    fitted curve are drawn as points only.
    """
    with plt.rc_context(STYLE):
        fig, ax = plt.subplots(figsize=(8, 5.5))
        groups = list(points.groupby(GROUP_KEYS, sort=True))
        cmap = plt.get_cmap('viridis', max(len(groups), 2))
        fitted = {k: g for k, g in curves.groupby(GROUP_KEYS, sort=True)} if len(curves) else {}

        for i, (key, g) in enumerate(groups):
            color = cmap(i)
            ax.scatter(g['TL'], g['ycurv'], s=14, color=color, alpha=0.7)
            if key in fitted:
                fc = fitted[key]
                ax.plot(fc['x'], fc['y'], linewidth=1.8, color=color, label=_label(key))
            else:
                ax.plot([], [], linestyle='none', marker='o', color=color,
                        label=f"{_label(key)} (no fit)")

        ax.set_xlabel('Trophic level')
        ax.set_ylabel('Relative cumulative biomass')
        ax.set_ylim(-0.02, 1.05)
        ax.set_title(title or f'Cumulative biomass curves by {by}', fontweight='bold')
        ax.legend(loc='lower right', ncol=2 if len(groups) > 8 else 1)
        ax.grid(alpha=0.2)
    return _save(fig, path)


def plot_single_curve(x_obs, y_obs, fit, title=None, path=None):
    """One curve in detail: data, fit, inflection point and lower asymptote."""
    p = fit.params
    with plt.rc_context(STYLE):
        fig, ax = plt.subplots(figsize=(7, 5))
        ax.scatter(x_obs, y_obs, s=22, color=C_RAW, label='observed', zorder=3)
        ax.plot(fit.x, fit.y, color=C_FIT, linewidth=2, label='5-parameter logistic')

        # tangent at the inflection, half a TL unit either side
        xt = np.array([p.TLinfl - 0.5, p.TLinfl + 0.5])
        ax.plot(xt, p.BIOinfl + p.Steepness * (xt - p.TLinfl), ':', color=C_MARK,
                label=f'steepness = {p.Steepness:.3f}')
        ax.plot([p.TLinfl], [p.BIOinfl], 'o', color=C_MARK, markersize=8,
                label=f'TLinfl = {p.TLinfl:.3f}, BIOinfl = {p.BIOinfl:.3f}')
        ax.plot([LOWA_TL], [p.LowA], 's', color='gray', label=f'LowA = {p.LowA:.3f}')
        ax.axhline(1.0, color='gray', linestyle=':', alpha=0.4)

        ax.set_xlabel('Trophic level')
        ax.set_ylabel('Relative cumulative biomass')
        ax.set_title(title or 'Cumulative biomass curve', fontweight='bold')
        ax.legend(loc='upper left')
        ax.grid(alpha=0.2)
    return _save(fig, path)


def plot_parameter_series(params, path=None):
    """2×2 panel of the curve parameters against year, one line per area."""
    with plt.rc_context(STYLE):
        fig, axes = plt.subplots(2, 2, figsize=(12, 8), sharex=True)
        for ax, (col, label) in zip(axes.flat, PARAM_LABELS.items()):
            for area, g in params.groupby('area_name', sort=True):
                g = g.sort_values('year')
                ax.plot(g['year'], g[col], marker='o', linewidth=1.5, label=area)
            ax.set_title(label, fontsize=11, fontweight='bold')
            ax.grid(alpha=0.2)
        for ax in axes[1]:
            ax.set_xlabel('Year')
        handles, labels = axes[0, 0].get_legend_handles_labels()
        if handles:
            fig.legend(handles, labels, loc='upper right', fontsize=9)
        fig.suptitle('Cumulative biomass curve parameters', fontsize=12, fontweight='bold')
        plt.tight_layout(rect=[0, 0, 0.9, 0.95])
    return _save(fig, path)
