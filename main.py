#!/usr/bin/env python3
"""
Survival analysis of the Haberman breast-cancer surgery dataset.
Runs the full pipeline: data preparation, Kaplan-Meier curves, log-rank
tests, Cox regression, proportional-hazards diagnostics and predictions.
"""

import sys

import matplotlib.pyplot as plt

from haberman_survival.config import (
    DATA_PATH, FIGURE_DIR, NODES_HIGH, NODES_LOW, set_publication_style
)
from haberman_survival.cox_analysis import (
    build_profiles, check_proportional_hazards, compute_schoenfeld_residuals,
    multivariate_cox_analysis, predict_survival_profiles, univariate_cox_analysis
)
from haberman_survival.data_loader import (
    DatasetFormatError, build_survival_data, load_and_preprocess_data,
    summarize_survival_data
)
from haberman_survival.plotting import (
    plot_combined_forest, plot_km_curve, plot_predicted_survival,
    plot_schoenfeld_residuals
)
from haberman_survival.statistics import (
    compute_correlation_matrix, compute_logrank_test, compute_median_survival,
    fit_kaplan_meier, flag_collinearity, km_summary_table
)
from haberman_survival.utils import format_pvalue, print_section, save_figure


def report_survival_data(df):
    """Print the survival object summary."""
    summary = summarize_survival_data(build_survival_data(df))
    print(f"n = {summary['n']}, events = {summary['events']}, "
          f"censored = {summary['censored']}")
    print(f"Follow-up: min {summary['min']:.1f}, Q1 {summary['q1']:.1f}, "
          f"median {summary['median']:.1f}, Q3 {summary['q3']:.1f}, "
          f"max {summary['max']:.1f}")
    return summary


def generate_km_overall(df, output_dir=FIGURE_DIR):
    """Overall Kaplan-Meier estimate, median survival and curve."""
    kmf = fit_kaplan_meier(df)
    print(km_summary_table(kmf).to_string(index=False))

    median_surv = compute_median_survival(kmf)
    print(f"\nMedian survival time: {median_surv} years")

    fig, ax = plt.subplots(1, 1, figsize=(4.5, 4))
    stats = plot_km_curve(ax, df, palette='lancet',
                          title='Courbe de survie Kaplan-Meier globale')
    save_figure(fig, 'km_overall', output_dir)
    return stats


def generate_km_nodes(df, output_dir=FIGURE_DIR):
    """Kaplan-Meier curves and log-rank test by lymph node group."""
    logrank = compute_logrank_test(df, 'Nodes_Group')

    fig, ax = plt.subplots(1, 1, figsize=(4.5, 4))
    stats = plot_km_curve(ax, df, group_col='Nodes_Group', palette='jco',
                          legend_title='Nombre de ganglions',
                          title='Comparaison de la survie par nombre de ganglions',
                          logrank=logrank)
    save_figure(fig, 'km_nodes_group', output_dir)

    print(f"\nLog-rank test ({NODES_LOW} vs {NODES_HIGH}):")
    print(logrank['table'].to_string())
    print(f"\nChisq = {logrank['test_statistic']:.3f} on "
          f"{logrank['degrees_freedom']} degrees of freedom")
    print(f"Log-rank p-value: {logrank['p_value']:.6g} "
          f"(lifelines: {logrank['p_value_lifelines']:.6g})")
    return stats, logrank


def generate_km_age(df, output_dir=FIGURE_DIR):
    """Kaplan-Meier curves and log-rank test by age band."""
    logrank = compute_logrank_test(df, 'Age_Group')

    fig, ax = plt.subplots(1, 1, figsize=(4.5, 4.3))
    stats = plot_km_curve(ax, df, group_col='Age_Group', palette='npg',
                          legend_title="Groupe d'âge",
                          title="Comparaison de la survie par groupe d'âge",
                          logrank=logrank)
    save_figure(fig, 'km_age_group', output_dir)

    print(logrank['table'].to_string())
    print(f"\nChisq = {logrank['test_statistic']:.3f} on "
          f"{logrank['degrees_freedom']} degrees of freedom, "
          f"p={format_pvalue(logrank['p_value'])}")
    return stats, logrank


def report_correlation(df):
    """Correlation matrix and collinearity flags ahead of the Cox model."""
    corr = compute_correlation_matrix(df)
    print(corr.round(3).to_string())

    flagged = flag_collinearity(corr)
    for a, b, r in flagged:
        print(f"Collinearity risk: {a} / {b} (r = {r:.2f})")
    if not flagged:
        print("No strong linear relationship between covariates.")
    return corr


def generate_cox_analysis(df, output_dir=FIGURE_DIR):
    """Cox model fit, hazard-ratio forest plot and PH diagnostics."""
    cph, multivariate_results, c_index = multivariate_cox_analysis(df)
    cph.print_summary()
    print("\nMultivariate Results:")
    print(multivariate_results.to_string(index=False))

    univariate_results = univariate_cox_analysis(df)
    print("\nUnivariate Results:")
    print(univariate_results.to_string(index=False))

    fig, ax = plt.subplots(1, 1, figsize=(5, 2.5))
    plot_combined_forest(ax, univariate_results, multivariate_results,
                         title='Hazard Ratios du modèle de Cox')
    save_figure(fig, 'cox_forest', output_dir)

    print_section("PROPORTIONAL HAZARDS ASSUMPTION")
    ph_test = check_proportional_hazards(cph, df)
    print(ph_test.summary.to_string())
    print("Note: lifelines reports one test per covariate; there is no GLOBAL row "
          "as in R's cox.zph.")

    residuals, times = compute_schoenfeld_residuals(cph, df)
    n_cov = len(residuals.columns)
    fig, axes = plt.subplots(1, n_cov, figsize=(3.5 * n_cov, 3), squeeze=False)
    plot_schoenfeld_residuals(list(axes[0]), residuals, times, ph_test.summary)
    fig.tight_layout()
    save_figure(fig, 'schoenfeld_residuals', output_dir)

    return cph, c_index


def generate_predictions(cph, output_dir=FIGURE_DIR):
    """Predicted survival for the example patient profiles."""
    profiles = build_profiles()
    predicted = predict_survival_profiles(cph, profiles)
    print(predicted.iloc[::max(1, len(predicted) // 10)].round(3).to_string())

    fig, ax = plt.subplots(1, 1, figsize=(4.5, 3.5))
    plot_predicted_survival(ax, predicted, palette='lancet',
                            title='Survie prédite pour différents profils de patients')
    save_figure(fig, 'predicted_survival', output_dir)
    return predicted


def main(data_path=DATA_PATH, output_dir=FIGURE_DIR):
    """Main analysis workflow."""
    set_publication_style()

    print_section("DATA PREPARATION")
    try:
        df = load_and_preprocess_data(data_path)
    except DatasetFormatError as e:
        sys.exit(f"Error: {e}")

    print_section("SURVIVAL OBJECT")
    report_survival_data(df)

    print_section("KAPLAN-MEIER (ALL PATIENTS)")
    generate_km_overall(df, output_dir)

    print_section("KAPLAN-MEIER BY NODES GROUP")
    generate_km_nodes(df, output_dir)

    print_section("KAPLAN-MEIER BY AGE GROUP")
    generate_km_age(df, output_dir)

    print_section("CORRELATION MATRIX")
    report_correlation(df)

    print_section("COX PROPORTIONAL HAZARDS MODEL")
    cph, c_index = generate_cox_analysis(df, output_dir)

    print_section("PREDICTED SURVIVAL")
    generate_predictions(cph, output_dir)

    print(f"\nConcordance index (C-index): {c_index:.4f}")

    print_section("ANALYSIS COMPLETE")


if __name__ == '__main__':
    main()
