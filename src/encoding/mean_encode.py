# src/encoding/mean_encode.py

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold

from feature_engineering.errors import ConfigurationError


def _smoothed_means(values: pd.Series, y: pd.Series, prior: float, smoothing: float) -> pd.Series:
    """Per-category (sum + prior * smoothing) / (count + smoothing)."""
    stats = y.groupby(values).agg(['sum', 'count'])
    return (stats['sum'] + prior * smoothing) / (stats['count'] + smoothing)


def mean_encode(df: pd.DataFrame, columns: list, target: str = 'is_attributed',
                smoothing: float = 20.0, n_splits: int = 5, random_state: int = 42) -> pd.DataFrame:
    """
    Mean (target) encode categorical columns.

    Each category is replaced by its smoothed target rate:
        (sum + prior * smoothing) / (count + smoothing)
    Rare categories shrink toward the global rate instead of memorising a
    handful of rows.

    With n_splits > 1 the encoding is out-of-fold: every row is encoded with
    statistics from the other folds, so a row never sees its own label.
    Categories missing from the training folds get the fold's global rate.

    Args:
        df: Input DataFrame (not modified)
        columns: Categorical columns to encode (e.g. ['app', 'channel'])
        target: 0/1 target column
        smoothing: Prior weight in rows (0 = plain mean)
        n_splits: KFold splits, <= 1 encodes with the full data
        random_state: Seed for the fold shuffle

    Returns:
        New DataFrame with a '{col}_mean' column per encoded column
    """
    missing = [col for col in [*columns, target] if col not in df.columns]
    if missing:
        raise ConfigurationError(f"Unknown column(s) for mean encoding: {missing}")
    if smoothing < 0:
        raise ConfigurationError(f"smoothing must be >= 0, got {smoothing}")
    if n_splits > 1 and len(df) < n_splits:
        raise ConfigurationError(f"Need at least {n_splits} rows for {n_splits}-fold encoding")

    out = df.copy()
    y = df[target].astype('float64')

    for col in columns:
        if n_splits > 1:
            encoded = np.empty(len(df), dtype='float64')
            folds = KFold(n_splits=n_splits, shuffle=True, random_state=random_state)
            for train_idx, valid_idx in folds.split(df):
                y_train = y.iloc[train_idx]
                prior = y_train.mean()
                means = _smoothed_means(df[col].iloc[train_idx], y_train, prior, smoothing)
                encoded[valid_idx] = df[col].iloc[valid_idx].map(means).fillna(prior).to_numpy()
        else:
            prior = y.mean()
            means = _smoothed_means(df[col], y, prior, smoothing)
            encoded = df[col].map(means).fillna(prior).to_numpy()

        out[f'{col}_mean'] = encoded
        print(f"    {col}: {df[col].nunique():,} categories → {col}_mean")

    return out
