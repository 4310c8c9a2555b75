"""Test Kaplan-Meier, log-rank and correlation helpers."""

import numpy as np
import pandas as pd
import pytest
from lifelines.statistics import multivariate_logrank_test

from haberman_survival.config import NODES_HIGH, NODES_LOW
from haberman_survival.statistics import (
    compute_correlation_matrix, compute_logrank_test, compute_median_survival,
    fit_kaplan_meier, fit_kaplan_meier_by_group, flag_collinearity,
    km_summary_table, logrank_observed_expected, logrank_pvalue, present_groups
)


def test_km_curve_is_non_increasing(cohort):
    kmf = fit_kaplan_meier(cohort)
    sf = kmf.survival_function_.iloc[:, 0].to_numpy()
    assert sf[0] == 1.0
    assert np.all(np.diff(sf) <= 1e-12)


def test_median_survival_not_reached_is_inf():
    df = pd.DataFrame({'Year': [1, 2, 3, 4, 5], 'Event': [1, 0, 0, 0, 0]})
    assert compute_median_survival(fit_kaplan_meier(df)) == np.inf


def test_median_survival_matches_lifelines(cohort):
    kmf = fit_kaplan_meier(cohort)
    assert compute_median_survival(kmf) == kmf.median_survival_time_


def test_km_summary_table_greenwood():
    df = pd.DataFrame({'Year': [1, 2, 3, 4, 5], 'Event': [1, 1, 0, 1, 1]})
    table = km_summary_table(fit_kaplan_meier(df))

    assert table['time'].tolist() == [1, 2, 4, 5]
    assert table['n_risk'].tolist() == [5, 4, 2, 1]
    assert table['survival'].iloc[0] == pytest.approx(0.8)
    assert table['std_err'].iloc[0] == pytest.approx(0.8 * np.sqrt(1 / 20))
    assert table['survival'].iloc[1] == pytest.approx(0.6)
    assert table['std_err'].iloc[1] == pytest.approx(0.6 * np.sqrt(1 / 20 + 1 / 12))


def test_km_summary_table_bounds(cohort):
    table = km_summary_table(fit_kaplan_meier(cohort))
    assert (table['n_event'] > 0).all()
    assert (table['lower_95'] <= table['survival'] + 1e-12).all()
    assert (table['survival'] <= table['upper_95'] + 1e-12).all()


def test_fit_by_group_skips_empty_strata(cohort):
    older = cohort[cohort['Age'] > 40]
    kmf_dict = fit_kaplan_meier_by_group(older, 'Age_Group')
    assert list(kmf_dict) == ['41-60', '61-90']
    assert sum(len(k.durations) for k in kmf_dict.values()) == len(older)


def test_present_groups_keeps_category_order(cohort):
    assert present_groups(cohort, 'Nodes_Group') == [NODES_LOW, NODES_HIGH]


def test_logrank_manual_pvalue_matches_lifelines(cohort):
    result = compute_logrank_test(cohort, 'Nodes_Group')
    assert result['degrees_freedom'] == 1
    assert result['p_value'] == pytest.approx(result['p_value_lifelines'], rel=1e-9, abs=1e-15)

    direct = multivariate_logrank_test(
        cohort['Year'], cohort['Nodes_Group'].astype(str), cohort['Event']
    )
    assert result['test_statistic'] == pytest.approx(direct.test_statistic)


def test_logrank_three_age_groups(cohort):
    result = compute_logrank_test(cohort, 'Age_Group')
    assert result['degrees_freedom'] == 2
    assert result['p_value'] == pytest.approx(result['p_value_lifelines'], rel=1e-9, abs=1e-15)


def test_logrank_table_expected_sums_to_observed(cohort):
    table = compute_logrank_test(cohort, 'Nodes_Group')['table']
    assert list(table.index) == [NODES_LOW, NODES_HIGH]
    assert table['N'].sum() == len(cohort)
    assert table['Observed'].sum() == cohort['Event'].sum()
    assert table['Expected'].sum() == pytest.approx(table['Observed'].sum())


def test_logrank_table_hand_computed():
    df = pd.DataFrame({'Year': [1, 2, 1, 3], 'Event': [1, 1, 0, 1],
                       'Group': ['A', 'A', 'B', 'B']})
    table = logrank_observed_expected(df, 'Group')

    # deaths at t=1,2,3 with 4, 2 and 1 at risk
    assert table['N'].tolist() == [2, 2]
    assert table['Observed'].tolist() == [2, 1]
    assert table['Expected'].tolist() == pytest.approx([1.0, 2.0])
    assert table['(O-E)^2/E'].tolist() == pytest.approx([1.0, 0.5])


def test_logrank_pvalue_from_chi_square():
    assert logrank_pvalue(3.841458820694124, 2) == pytest.approx(0.05)
    assert logrank_pvalue(0.0, 3) == pytest.approx(1.0)


def test_correlation_matrix(cohort):
    corr = compute_correlation_matrix(cohort)
    assert list(corr.columns) == ['Age', 'Year', 'Nodes']
    assert np.allclose(np.diag(corr), 1.0)
    assert np.allclose(corr.to_numpy(), corr.to_numpy().T)


def test_flag_collinearity():
    corr = pd.DataFrame(
        [[1.0, 0.85, 0.1], [0.85, 1.0, -0.75], [0.1, -0.75, 1.0]],
        index=['Age', 'Year', 'Nodes'], columns=['Age', 'Year', 'Nodes'],
    )
    flagged = flag_collinearity(corr)
    assert [(a, b) for a, b, _ in flagged] == [('Age', 'Year'), ('Year', 'Nodes')]
    assert flag_collinearity(corr, threshold=0.9) == []
