"""Statistical analysis functions."""

import numpy as np
import pandas as pd
from lifelines import KaplanMeierFitter
from lifelines.statistics import multivariate_logrank_test
from lifelines.utils import survival_table_from_events
from scipy import stats

from .config import COLLINEARITY_THRESHOLD, EVENT_COL, TIME_COL


def fit_kaplan_meier(df, time_col=TIME_COL, event_col=EVENT_COL, label='All patients'):
    """
    Fit an unstratified Kaplan-Meier curve.

    Parameters
    ----------
    df : pd.DataFrame
    time_col : str
    event_col : str
    label : str

    Returns
    -------
    KaplanMeierFitter
    """
    kmf = KaplanMeierFitter()
    kmf.fit(df[time_col], event_observed=df[event_col], label=label)
    return kmf


def fit_kaplan_meier_by_group(df, group_col, time_col=TIME_COL, event_col=EVENT_COL):
    """
    Fit one Kaplan-Meier curve per stratum.

    Strata keep their categorical order; empty categories are skipped.

    Returns
    -------
    dict
        Group labels to fitted KaplanMeierFitter objects
    """
    kmf_dict = {}
    for group in present_groups(df, group_col):
        mask = df[group_col] == group
        kmf_dict[str(group)] = fit_kaplan_meier(
            df[mask], time_col, event_col, label=str(group)
        )
    return kmf_dict


def present_groups(df, group_col):
    """Return the non-empty groups of ``group_col`` in category order."""
    col = df[group_col]
    if isinstance(col.dtype, pd.CategoricalDtype):
        counts = col.value_counts(sort=False)
        return [g for g in col.cat.categories if counts.get(g, 0) > 0]
    return sorted(col.dropna().unique())


def compute_median_survival(kmf):
    """
    Median survival time of a fitted Kaplan-Meier model.

    Returns ``inf`` when the curve never drops to 0.5.
    """
    return float(kmf.median_survival_time_)


def km_summary_table(kmf):
    """
    Survival estimates at each event time.

    Standard errors use Greenwood's formula; the confidence bounds are the
    ones computed by lifelines.

    Returns
    -------
    pd.DataFrame
        time, n_risk, n_event, survival, std_err, lower_95, upper_95
    """
    et = kmf.event_table
    et = et[et['observed'] > 0]
    times = et.index

    surv = kmf.survival_function_.loc[times].iloc[:, 0]
    ci = kmf.confidence_interval_.loc[times]

    with np.errstate(divide='ignore', invalid='ignore'):
        greenwood = (et['observed'] / (et['at_risk'] * (et['at_risk'] - et['observed']))).cumsum()
        std_err = surv * np.sqrt(greenwood)

    return pd.DataFrame({
        'time': times,
        'n_risk': et['at_risk'].astype(int).values,
        'n_event': et['observed'].astype(int).values,
        'survival': surv.values,
        'std_err': std_err.values,
        'lower_95': ci.iloc[:, 0].values,
        'upper_95': ci.iloc[:, 1].values,
    })


def logrank_pvalue(test_statistic, n_groups):
    """P-value of a log-rank chi-square statistic with (n_groups - 1) df."""
    return stats.chi2.sf(test_statistic, n_groups - 1)


def logrank_observed_expected(df, group_col, time_col=TIME_COL, event_col=EVENT_COL):
    """
    Observed and expected events per group under the log-rank null.

    Mirrors the N / Observed / Expected / (O-E)^2/E table printed by R's
    ``survdiff``. Expected counts sum, over every distinct time, the group's
    share of the risk set times the number of deaths at that time; both risk
    sets come from lifelines survival tables built on the same timeline.

    Returns
    -------
    pd.DataFrame
        Indexed by group with N, Observed, Expected and (O-E)^2/E
    """
    durations = df[time_col].to_numpy(dtype=float)
    events = df[event_col].to_numpy(dtype=int)
    groups = df[group_col].astype(str).to_numpy()

    overall = survival_table_from_events(durations, events)
    deaths_share = overall['observed'] / overall['at_risk']

    rows = {}
    for group in present_groups(df, group_col):
        in_group = groups == str(group)
        table = survival_table_from_events(durations, events, weights=in_group.astype(int))
        observed = table['observed'].sum()
        expected = (table['at_risk'] * deaths_share).sum()
        rows[str(group)] = {
            'N': int(in_group.sum()),
            'Observed': int(observed),
            'Expected': expected,
            '(O-E)^2/E': (observed - expected) ** 2 / expected,
        }
    return pd.DataFrame.from_dict(rows, orient='index')


def compute_logrank_test(df, group_col, time_col=TIME_COL, event_col=EVENT_COL):
    """
    Log-rank test across all strata of ``group_col``.

    The chi-square statistic comes from lifelines; the p-value is derived
    from the chi-square distribution with (#strata - 1) degrees of freedom
    and reported next to the library's own value.

    Parameters
    ----------
    df : pd.DataFrame
    group_col : str
    time_col : str
    event_col : str

    Returns
    -------
    dict
        test_statistic, degrees_freedom, p_value, p_value_lifelines, table
    """
    groups = present_groups(df, group_col)
    df_test = df[df[group_col].isin(groups)]

    result = multivariate_logrank_test(
        df_test[time_col], df_test[group_col].astype(str), df_test[event_col]
    )
    chisq = float(result.test_statistic)

    return {
        'test_statistic': chisq,
        'degrees_freedom': len(groups) - 1,
        'p_value': float(logrank_pvalue(chisq, len(groups))),
        'p_value_lifelines': float(result.p_value),
        'table': logrank_observed_expected(df_test, group_col, time_col, event_col),
    }


def compute_correlation_matrix(df, columns=('Age', 'Year', 'Nodes')):
    """Pearson correlation matrix of the given numeric columns."""
    return df[list(columns)].corr()


def flag_collinearity(corr, threshold=COLLINEARITY_THRESHOLD):
    """
    List variable pairs whose absolute correlation reaches ``threshold``.

    Returns
    -------
    list of tuple
        (variable_a, variable_b, r)
    """
    flagged = []
    cols = list(corr.columns)
    for i, a in enumerate(cols):
        for b in cols[i + 1:]:
            r = corr.loc[a, b]
            if abs(r) >= threshold:
                flagged.append((a, b, r))
    return flagged
