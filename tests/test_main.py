"""End-to-end run of the analysis pipeline."""

import os

import pandas as pd
import pytest

import main


def test_main_writes_all_figures(csv_path, tmp_path, capsys):
    out_dir = str(tmp_path / 'Figures')
    main.main(data_path=csv_path, output_dir=out_dir)

    for name in ['km_overall', 'km_nodes_group', 'km_age_group', 'cox_forest',
                 'schoenfeld_residuals', 'predicted_survival']:
        assert os.path.exists(os.path.join(out_dir, f'{name}.png'))

    out = capsys.readouterr().out
    assert 'Log-rank p-value' in out
    assert 'Concordance index (C-index)' in out
    assert 'no GLOBAL row' in out


def test_main_reports_aliased_covariate(two_pattern_cohort, tmp_path, capsys):
    raw = pd.DataFrame({
        'age': two_pattern_cohort['Age'],
        'year': two_pattern_cohort['Year'],
        'nodes': two_pattern_cohort['Nodes'],
        'status': two_pattern_cohort['Event'] + 1,
    })
    path = tmp_path / 'two_patterns.csv'
    raw.to_csv(path, sep=';', index=False)

    out_dir = str(tmp_path / 'Figures')
    main.main(data_path=str(path), output_dir=out_dir)

    out = capsys.readouterr().out
    assert 'Nodes is a linear combination' in out
    assert os.path.exists(os.path.join(out_dir, 'schoenfeld_residuals.png'))


def test_main_aborts_on_wrong_column_count(tmp_path):
    path = tmp_path / 'bad.csv'
    pd.DataFrame({'a': [1, 2], 'b': [3, 4]}).to_csv(path, sep=';', index=False)
    with pytest.raises(SystemExit) as excinfo:
        main.main(data_path=str(path), output_dir=str(tmp_path / 'Figures'))
    assert 'Expected 4 columns' in str(excinfo.value.code)
