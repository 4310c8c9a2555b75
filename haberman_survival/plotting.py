"""Plotting functions for survival curves and Cox model diagnostics."""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
from statsmodels.nonparametric.smoothers_lowess import lowess

from .config import COLORS, PALETTES, XLABEL, YLABEL
from .statistics import (
    compute_logrank_test, compute_median_survival, fit_kaplan_meier,
    fit_kaplan_meier_by_group
)
from .utils import format_pvalue


def add_number_at_risk(ax, kmf_dict, colors_dict, xlabel=XLABEL,
                       time_points=None, y_offset=-0.16):
    """
    Add number at risk table below KM plot.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
    kmf_dict : dict
        Group labels to fitted KaplanMeierFitter objects
    colors_dict : dict
        Group labels to colors
    xlabel : str
        X-axis label, drawn under the table
    time_points : array-like, optional
    y_offset : float
        Vertical position of the first table row, in axes coordinates

    Returns
    -------
    dict
        Group labels to lists of at-risk counts at ``time_points``
    """
    if time_points is None:
        max_time = max(kmf.durations.max() for kmf in kmf_dict.values())
        time_points = np.linspace(0, max_time, 5).round().astype(int)

    ax.set_xticks(time_points)
    xlim = ax.get_xlim()

    n_risk_y_center = y_offset - (len(kmf_dict) - 1) * 0.06 / 2
    ax.text(-0.12, n_risk_y_center, 'N@risk',
            transform=ax.transAxes, fontsize=7, ha='center',
            va='center', rotation=90, color='#000000')

    counts = {}
    for i, (label, kmf) in enumerate(kmf_dict.items()):
        y_pos = y_offset - i * 0.06
        line_color = colors_dict.get(label, COLORS['blue'])

        ax.add_patch(plt.Rectangle((-0.085, y_pos - 0.018), 0.045, 0.036,
                                   transform=ax.transAxes, facecolor=line_color,
                                   edgecolor='none', clip_on=False))

        counts[label] = []
        for t in time_points:
            n_at_risk = int((kmf.durations >= t).sum())
            counts[label].append(n_at_risk)
            x_norm = (t - xlim[0]) / (xlim[1] - xlim[0])
            ax.text(x_norm, y_pos, str(n_at_risk),
                    transform=ax.transAxes, fontsize=7, ha='center',
                    va='center', color='#000000')

    xlabel_y = y_offset - len(kmf_dict) * 0.06 - 0.04
    ax.text(0.5, xlabel_y, xlabel, transform=ax.transAxes,
            fontsize=8, ha='center', va='top', color='#000000')
    return counts


def plot_km_curve(ax, df, group_col=None, palette='lancet', title='',
                  legend_title=None, show_ci=True, show_median=True,
                  show_pvalue=True, show_n_at_risk=True, xlabel=XLABEL,
                  ylabel=YLABEL, time_points=None, logrank=None):
    """
    Plot Kaplan-Meier survival curves with confidence bands and statistics.

    Without ``group_col`` a single curve is drawn for all patients. With it,
    one curve per non-empty stratum is drawn and, when ``show_pvalue`` is
    set, the log-rank p-value across strata is printed on the axes.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
    df : pd.DataFrame
    group_col : str, optional
    palette : str
        Key of ``config.PALETTES``
    title : str
    legend_title : str, optional
    show_ci : bool
    show_median : bool
    show_pvalue : bool
    show_n_at_risk : bool
    xlabel : str
    ylabel : str
    time_points : array-like, optional
        Ticks used for the at-risk table
    logrank : dict, optional
        Result of ``compute_logrank_test`` for ``group_col``; computed when
        not given

    Returns
    -------
    dict
        Per-group n, events and median survival, plus ``p_value`` for
        stratified plots
    """
    colors = PALETTES[palette]
    stats_dict = {}

    if group_col is None:
        kmf_dict = {'All patients': fit_kaplan_meier(df)}
    else:
        kmf_dict = fit_kaplan_meier_by_group(df, group_col)

    colors_dict = {}
    medians = []
    for idx, (label, kmf) in enumerate(kmf_dict.items()):
        color = colors[idx % len(colors)]
        colors_dict[label] = color
        kmf.plot_survival_function(ax=ax, ci_show=show_ci, show_censors=True,
                                   color=color, linewidth=1.5,
                                   censor_styles={'ms': 5, 'marker': '|'})

        median_surv = compute_median_survival(kmf)
        medians.append(median_surv)
        stats_dict[label] = {
            'n': len(kmf.durations),
            'events': int(kmf.event_observed.sum()),
            'median_survival': median_surv
        }

    if show_median:
        finite = [m for m in medians if np.isfinite(m)]
        if finite:
            ax.axhline(y=0.5, color='gray', linestyle='--', linewidth=0.8, alpha=0.5)
        for m in finite:
            ax.axvline(x=m, color='gray', linestyle='--', linewidth=0.8,
                       alpha=0.5, ymax=0.5)
            ax.text(m, 0.05, f'{m:.2f}', fontsize=7, ha='center', color='#000000')

    if group_col is not None and len(kmf_dict) > 1:
        if logrank is None:
            logrank = compute_logrank_test(df, group_col)
        stats_dict['p_value'] = logrank['p_value']
        if show_pvalue:
            ax.text(0.05, 0.15, f"Log-rank p={format_pvalue(logrank['p_value'])}",
                    transform=ax.transAxes, fontsize=7, ha='left', va='top',
                    color='#000000')

    ax.legend(loc='upper right', frameon=False, fontsize=7, title=legend_title,
              title_fontsize=7, handlelength=1.2, handletextpad=0.4)

    if show_n_at_risk:
        add_number_at_risk(ax, kmf_dict, colors_dict, xlabel=xlabel,
                           time_points=time_points)
        ax.set_xlabel('')
    else:
        ax.set_xlabel(xlabel, fontsize=8)

    ax.set_ylim(-0.05, 1.05)
    ax.set_ylabel(ylabel, fontsize=8)
    if title:
        ax.set_title(title, fontsize=9)
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)

    return stats_dict


def plot_combined_forest(ax, univariate_results, multivariate_results, title=''):
    """
    Plot combined forest plot with univariate and multivariate results.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
    univariate_results : pd.DataFrame
    multivariate_results : pd.DataFrame
        Both as returned by ``cox_analysis.cox_results_table``; rows of
        aliased covariates (NaN) are skipped
    title : str
    """
    univariate_results = univariate_results.dropna(subset=['HR'])
    multivariate_results = multivariate_results.dropna(subset=['HR'])

    variables = univariate_results['Variable'].tolist()
    n = len(variables)
    multi = multivariate_results.set_index('Variable')

    for i, (_, row) in enumerate(univariate_results.iterrows()):
        color = COLORS['blue'] if row['P_value'] < 0.05 else COLORS['gray']
        y = i + 0.12
        ax.plot([row['CI_lower'], row['CI_upper']], [y, y],
                color=color, linewidth=1.2, zorder=1, alpha=0.8)
        ax.scatter(row['HR'], y, s=40, color=color, zorder=2,
                   edgecolors='white', linewidth=0.5, alpha=0.8)

        text = (f"{row['HR']:.2f} ({row['CI_lower']:.2f}-{row['CI_upper']:.2f}), "
                f"p={format_pvalue(row['P_value'])}")
        ax.text(1.02, y, text, transform=ax.get_yaxis_transform(),
                fontsize=6, va='center', ha='left', color='#000000')

    for i, var in enumerate(variables):
        if var not in multi.index:
            continue
        row = multi.loc[var]
        color = COLORS['blue'] if row['P_value'] < 0.05 else COLORS['gray']
        y = i - 0.12
        ax.plot([row['CI_lower'], row['CI_upper']], [y, y],
                color=color, linewidth=1.5, zorder=3)
        ax.scatter(row['HR'], y, s=50, color=color, zorder=4,
                   marker='D', edgecolors='white', linewidth=0.5)

        text = (f"{row['HR']:.2f} ({row['CI_lower']:.2f}-{row['CI_upper']:.2f}), "
                f"p={format_pvalue(row['P_value'])}")
        ax.text(1.02, y, text, transform=ax.get_yaxis_transform(),
                fontsize=6, va='center', ha='left', color='#000000')

    ax.axvline(1, color='black', linestyle='--', linewidth=0.8, alpha=0.5)

    ax.set_yticks(np.arange(n))
    ax.set_yticklabels(variables, fontsize=7, color='#000000')
    ax.set_ylim(-0.6, n - 0.4)

    lows = np.concatenate([univariate_results['CI_lower'], multivariate_results['CI_lower']])
    highs = np.concatenate([univariate_results['CI_upper'], multivariate_results['CI_upper']])
    ax.set_xscale('log')
    ax.set_xlim(min(lows.min(), 1.0) / 1.05, max(highs.max(), 1.0) * 1.05)
    ax.set_xlabel('Hazard Ratio (95% CI)', fontsize=8, color='#000000')
    if title:
        ax.set_title(title, fontsize=9)

    legend_elements = [
        Line2D([0], [0], marker='o', color='w', markerfacecolor=COLORS['gray'],
               markersize=5, label='Uni-COX', markeredgewidth=0.5, markeredgecolor='white'),
        Line2D([0], [0], marker='D', color='w', markerfacecolor=COLORS['gray'],
               markersize=5, label='Multi-COX', markeredgewidth=0.5, markeredgecolor='white')
    ]
    ax.legend(handles=legend_elements, loc='lower right', fontsize=6.5,
              frameon=False, handletextpad=0.3, borderaxespad=0.3)

    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    ax.grid(axis='x', alpha=0.2, linewidth=0.5)


def plot_schoenfeld_residuals(axes, residuals, times, ph_summary=None, xlabel=XLABEL,
                              frac=0.6):
    """
    Scatter scaled Schoenfeld residuals against time, one panel per covariate.

    A LOWESS trend is overlaid; a flat trend is consistent with
    proportional hazards.

    Parameters
    ----------
    axes : sequence of matplotlib.axes.Axes
        One per column of ``residuals``
    residuals : pd.DataFrame
    times : pd.Series
        Event time of each residual row
    ph_summary : pd.DataFrame, optional
        ``summary`` of the proportional-hazards test, indexed by covariate
    xlabel : str
    frac : float
        Fraction of the residuals used for each local LOWESS fit
    """
    t = times.to_numpy(dtype=float)

    for ax, col in zip(axes, residuals.columns):
        r = residuals[col].to_numpy(dtype=float)
        ax.scatter(t, r, s=10, color=COLORS['gray'], alpha=0.7,
                   edgecolors='none')

        if len(np.unique(t)) > 2:
            smooth = lowess(r, t, frac=frac)
            ax.plot(smooth[:, 0], smooth[:, 1], color=COLORS['blue'], linewidth=1.5)

        if ph_summary is not None and col in ph_summary.index:
            p = ph_summary.loc[col, 'p']
            ax.text(0.05, 0.95, f"p={format_pvalue(p)}", transform=ax.transAxes,
                    fontsize=7, ha='left', va='top', color='#000000')

        ax.set_xlabel(xlabel, fontsize=8)
        ax.set_ylabel(f'Beta(t) for {col}', fontsize=8)
        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)


def plot_predicted_survival(ax, survival_df, palette='lancet', title='',
                            xlabel=XLABEL, ylabel=YLABEL):
    """
    Plot Cox-predicted survival curves, one per column of ``survival_df``.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
    survival_df : pd.DataFrame
        Indexed by time, as returned by ``predict_survival_function``
    palette : str
    title : str
    xlabel : str
    ylabel : str
    """
    colors = PALETTES[palette]
    for idx, label in enumerate(survival_df.columns):
        ax.step(survival_df.index, survival_df[label], where='post',
                color=colors[idx % len(colors)], linewidth=1.5, label=str(label))

    ax.set_ylim(-0.05, 1.05)
    ax.set_xlabel(xlabel, fontsize=8)
    ax.set_ylabel(ylabel, fontsize=8)
    if title:
        ax.set_title(title, fontsize=9)
    ax.legend(loc='lower left', frameon=False, fontsize=7)
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
