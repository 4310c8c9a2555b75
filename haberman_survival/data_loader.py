"""Data loading and preprocessing."""

import numpy as np
import pandas as pd

from .config import (
    AGE_BINS, AGE_LABELS, AGE_RANGE, CSV_SEPARATOR, EVENT_COL, NODES_HIGH,
    NODES_LOW, NODES_RANGE, NODES_THRESHOLD, RAW_COLUMNS, STATUS_DIED, TIME_COL
)


class DatasetFormatError(ValueError):
    """Raised when the input file does not have the expected layout."""


def load_raw_data(filepath, sep=CSV_SEPARATOR, verbose=True):
    """
    Load the Haberman dataset and check its shape.

    Parameters
    ----------
    filepath : str
        Path to a delimited text file with a header row
    sep : str
        Field separator
    verbose : bool
        Print dimensions, column names and the first rows

    Returns
    -------
    pd.DataFrame
        Raw dataset with columns Age, Year, Nodes, Survival_Status

    Raises
    ------
    DatasetFormatError
        If the file does not hold exactly 4 columns
    """
    df = pd.read_csv(filepath, sep=sep)

    if verbose:
        print(f"Dimensions: {df.shape[0]} rows x {df.shape[1]} columns")
        print(f"Columns: {list(df.columns)}")
        print(df.head())

    if df.shape[1] != len(RAW_COLUMNS):
        raise DatasetFormatError(
            f"Expected {len(RAW_COLUMNS)} columns in {filepath}, found "
            f"{df.shape[1]}. Check the separator (expected {sep!r})."
        )

    df.columns = RAW_COLUMNS
    return df


def describe_data(df):
    """Print summary statistics and the survival status distribution."""
    print(df.describe())
    print("\nSurvival_Status counts:")
    print(df['Survival_Status'].value_counts().sort_index().to_string())


def recode_variables(df):
    """
    Coerce raw columns to numeric and derive Event and Age_Group.

    Survival_Status 2 (died within 5 years) becomes Event 1; status 1
    (survived 5 years or more) is censored, Event 0.

    Parameters
    ----------
    df : pd.DataFrame
        Raw dataset

    Returns
    -------
    pd.DataFrame
        Copy with numeric columns plus Event and Age_Group
    """
    df = df.copy()
    for col in RAW_COLUMNS:
        df[col] = pd.to_numeric(df[col])

    df[EVENT_COL] = (df['Survival_Status'] == STATUS_DIED).astype(int)
    df['Age_Group'] = pd.cut(df['Age'], bins=AGE_BINS, labels=AGE_LABELS)
    return df


def filter_outliers(df):
    """Keep rows with Age in (20, 90] and Nodes in [0, 30]."""
    mask = (
        (df['Age'] > AGE_RANGE[0]) & (df['Age'] <= AGE_RANGE[1]) &
        (df['Nodes'] >= NODES_RANGE[0]) & (df['Nodes'] <= NODES_RANGE[1])
    )
    return df[mask].copy()


def add_nodes_group(df, threshold=NODES_THRESHOLD):
    """
    Split patients on the number of positive lymph nodes.

    Parameters
    ----------
    df : pd.DataFrame
    threshold : int
        Patients with more than ``threshold`` nodes fall in the high group

    Returns
    -------
    pd.DataFrame
        Copy with an ordered categorical Nodes_Group column
    """
    df = df.copy()
    labels = np.where(df['Nodes'] > threshold, NODES_HIGH, NODES_LOW)
    df['Nodes_Group'] = pd.Categorical(labels, categories=[NODES_LOW, NODES_HIGH])
    return df


def build_survival_data(df, time_col=TIME_COL, event_col=EVENT_COL):
    """Pair follow-up time and event indicator for each subject."""
    surv = df[[time_col, event_col]].rename(
        columns={time_col: 'duration', event_col: 'event'}
    )
    return surv.astype({'duration': float, 'event': int})


def summarize_survival_data(surv):
    """
    Summarize a survival frame built by ``build_survival_data``.

    Returns
    -------
    dict
        n, events, censored and duration quartiles
    """
    quartiles = surv['duration'].quantile([0.0, 0.25, 0.5, 0.75, 1.0])
    return {
        'n': len(surv),
        'events': int(surv['event'].sum()),
        'censored': int((surv['event'] == 0).sum()),
        'min': quartiles[0.0],
        'q1': quartiles[0.25],
        'median': quartiles[0.5],
        'q3': quartiles[0.75],
        'max': quartiles[1.0],
    }


def load_and_preprocess_data(filepath, verbose=True):
    """
    Load, validate, recode and filter the dataset.

    Parameters
    ----------
    filepath : str
    verbose : bool

    Returns
    -------
    pd.DataFrame
        Analysis-ready dataframe with Event, Age_Group and Nodes_Group
    """
    df = load_raw_data(filepath, verbose=verbose)
    if verbose:
        describe_data(df)

    df = recode_variables(df)
    n_before = len(df)
    df = filter_outliers(df)
    df = add_nodes_group(df)

    if verbose:
        print(f"\nRows kept after outlier filter: {len(df)}/{n_before}")
        print("\nNodes_Group counts:")
        print(df['Nodes_Group'].value_counts(sort=False).to_string())

    return df
