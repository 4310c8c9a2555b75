"""Cox regression analysis module."""

import numpy as np
import pandas as pd
from lifelines import CoxPHFitter
from lifelines.statistics import proportional_hazard_test

from .config import COX_COVARIATES, COX_MAX_ITER, EVENT_COL, EXAMPLE_PROFILES, TIME_COL

RESULT_COLUMNS = ['Variable', 'coef', 'se', 'HR', 'CI_lower', 'CI_upper', 'P_value']


def find_aliased_covariates(df, covariates):
    """
    Covariates that are linear combinations of the ones before them.

    Columns are added in order to the centred design matrix; a column that
    does not raise its rank is aliased, as R's ``coxph`` reports with an NA
    coefficient. A constant column is aliased with the baseline hazard.

    Returns
    -------
    list of str
    """
    X = df[list(covariates)].to_numpy(dtype=float)
    X = X - X.mean(axis=0)

    aliased = []
    rank = 0
    for k, var in enumerate(covariates):
        new_rank = np.linalg.matrix_rank(X[:, :k + 1])
        if new_rank == rank:
            aliased.append(var)
        rank = new_rank
    return aliased


def fit_cox_model(df, covariates=COX_COVARIATES, time_col=TIME_COL,
                  event_col=EVENT_COL, max_iter=COX_MAX_ITER):
    """
    Fit a Cox proportional-hazards model.

    Aliased covariates (see ``find_aliased_covariates``) are left out of the
    fit and recorded on the model as ``aliased_``.

    Parameters
    ----------
    df : pd.DataFrame
    covariates : list of str
    time_col : str
    event_col : str
    max_iter : int
        Cap on Newton-Raphson iterations

    Returns
    -------
    CoxPHFitter
        Fitted model; lifelines raises ConvergenceError on failure

    Raises
    ------
    ValueError
        If every covariate is aliased
    """
    covariates = list(covariates)
    aliased = find_aliased_covariates(df, covariates)
    kept = [var for var in covariates if var not in aliased]
    if not kept:
        raise ValueError(f"No identifiable covariate among {covariates}")
    for var in aliased:
        print(f"Note: {var} is a linear combination of the other covariates; "
              f"coefficient not estimated (NA)")

    data = df[kept + [time_col, event_col]].copy()
    cph = CoxPHFitter()
    cph.fit(data, duration_col=time_col, event_col=event_col,
            fit_options={'max_steps': max_iter})
    cph.covariates_ = covariates
    cph.aliased_ = aliased
    return cph


def cox_results_table(cph):
    """
    Coefficients, hazard ratios and 95% CIs of a fitted model.

    Aliased covariates appear as rows of NaN, in their original position.

    Returns
    -------
    pd.DataFrame
        Variable, coef, se, HR, CI_lower, CI_upper, P_value
    """
    summary = cph.summary
    table = pd.DataFrame({
        'Variable': summary.index.tolist(),
        'coef': summary['coef'].values,
        'se': summary['se(coef)'].values,
        'HR': summary['exp(coef)'].values,
        'CI_lower': summary['exp(coef) lower 95%'].values,
        'CI_upper': summary['exp(coef) upper 95%'].values,
        'P_value': summary['p'].values,
    })
    order = getattr(cph, 'covariates_', table['Variable'].tolist())
    return (table.set_index('Variable')
            .reindex(order)
            .rename_axis('Variable')
            .reset_index()[RESULT_COLUMNS])


def univariate_cox_analysis(df, covariates=COX_COVARIATES, time_col=TIME_COL,
                            event_col=EVENT_COL, max_iter=COX_MAX_ITER):
    """
    Fit one Cox model per covariate.

    Constant covariates cannot be estimated and are skipped.

    Returns
    -------
    pd.DataFrame
        One row per estimable covariate, same columns as ``cox_results_table``
    """
    tables = []
    for var in covariates:
        if find_aliased_covariates(df, [var]):
            print(f"Note: {var} is constant; univariate model skipped")
            continue
        tables.append(cox_results_table(fit_cox_model(df, [var], time_col, event_col, max_iter)))
    if not tables:
        return pd.DataFrame(columns=RESULT_COLUMNS)
    return pd.concat(tables, ignore_index=True)


def multivariate_cox_analysis(df, covariates=COX_COVARIATES, time_col=TIME_COL,
                              event_col=EVENT_COL, max_iter=COX_MAX_ITER):
    """
    Fit the multivariable Cox model.

    Returns
    -------
    tuple
        (cph, results table, concordance index)
    """
    cph = fit_cox_model(df, covariates, time_col, event_col, max_iter)
    return cph, cox_results_table(cph), cph.concordance_index_


def check_proportional_hazards(cph, df, time_col=TIME_COL, event_col=EVENT_COL,
                               time_transform='km'):
    """
    Schoenfeld-residual test of the proportional-hazards assumption.

    Parameters
    ----------
    cph : CoxPHFitter
        Fitted model
    df : pd.DataFrame
        Training data
    time_transform : str
        Time scale the residuals are correlated with

    Returns
    -------
    StatisticalResult
        ``summary`` holds one test statistic and p-value per covariate
    """
    data = df[list(cph.params_.index) + [time_col, event_col]]
    return proportional_hazard_test(cph, data, time_transform=time_transform)


def compute_schoenfeld_residuals(cph, df, time_col=TIME_COL, event_col=EVENT_COL):
    """
    Scaled Schoenfeld residuals and the event times they belong to.

    Returns
    -------
    tuple
        (residuals DataFrame, times Series), aligned on the subject index
    """
    data = df[list(cph.params_.index) + [time_col, event_col]]
    residuals = cph.compute_residuals(data, kind='scaled_schoenfeld')
    times = data.loc[residuals.index, time_col]
    return residuals, times


def build_profiles(profiles=EXAMPLE_PROFILES):
    """Covariate frame indexed by profile label."""
    return pd.DataFrame.from_dict(profiles, orient='index')


def predict_survival_profiles(cph, profiles_df):
    """
    Predicted survival curves for each covariate profile.

    Returns
    -------
    pd.DataFrame
        Indexed by time, one column per profile
    """
    covariates = list(cph.params_.index)
    return cph.predict_survival_function(profiles_df[covariates])
