"""Shared fixtures: synthetic Haberman-like cohorts."""

import matplotlib

matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

from haberman_survival.data_loader import load_and_preprocess_data


def make_cohort(n=200, seed=0):
    """Simulate follow-up where more positive nodes shorten survival."""
    rng = np.random.RandomState(seed)
    age = rng.randint(25, 86, n)
    nodes = np.clip(rng.poisson(4, n), 0, 30)
    event_time = rng.exponential(8 * np.exp(-0.2 * nodes))
    censor_time = rng.uniform(1, 12, n)
    year = np.ceil(np.minimum(event_time, censor_time)).astype(int)
    status = np.where(event_time <= censor_time, 2, 1)
    return pd.DataFrame({'age': age, 'year': year, 'nodes': nodes, 'status': status})


@pytest.fixture
def raw_cohort():
    df = make_cohort()
    outliers = pd.DataFrame({
        'age': [18, 95, 50, 50],
        'year': [3, 4, 5, 6],
        'nodes': [1, 2, 45, -1],
        'status': [1, 2, 1, 2],
    })
    return pd.concat([df, outliers], ignore_index=True)


@pytest.fixture
def csv_path(tmp_path, raw_cohort):
    path = tmp_path / 'haberman.csv'
    raw_cohort.to_csv(path, sep=';', index=False)
    return str(path)


@pytest.fixture
def cohort(csv_path):
    return load_and_preprocess_data(csv_path, verbose=False)


@pytest.fixture
def two_pattern_cohort():
    """Two covariate patterns; the high-node group dies earlier."""
    return pd.DataFrame({
        'Age': [45] * 10 + [65] * 10,
        'Nodes': [2] * 10 + [10] * 10,
        'Year': [2, 4, 5, 6, 7, 8, 9, 10, 11, 12,
                 1, 1, 2, 3, 3, 4, 5, 6, 8, 9],
        'Event': [1, 0, 1, 0, 1, 0, 0, 1, 0, 0,
                  1, 1, 1, 0, 1, 1, 1, 0, 1, 1],
    })
