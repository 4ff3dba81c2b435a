# src/feature_engineering/naive_join.py

"""
Naive self-join window counts.

Every click is joined with every earlier-or-same click of its key, the pairs
are filtered to the trailing window, and then aggregated:
- count: number of partner clicks (same as the rolling counter)
- distinct count: number of distinct secondary values among the partners
  (e.g. how many devices an ip used in the last 2 seconds)

This is the correctness reference for rolling_counts and the only way to get
distinct counts. The merge on the key holds sum(c**2) rows for key value
counts c, roughly n**2 / cardinality for a uniform key, so a low-cardinality
key such as app blows up quickly. The join is refused up front when it would
exceed `max_pairs`.
"""

from typing import Iterable, Sequence

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype

from .errors import ConfigurationError, DataOrderingError, JoinBlowupError
from .window_config import (
    DEFAULT_MAX_JOIN_PAIRS,
    feature_column_name,
    require_columns,
    validate_closed,
    validate_windows,
)


def self_join_pair_count(events: pd.DataFrame, key: str) -> int:
    """Rows of the self-merge on `key`, before any pair is filtered out."""
    require_columns(events.columns, [key])
    counts = events[key].value_counts(dropna=False).to_numpy(dtype=np.int64)
    return int((counts * counts).sum())


def naive_window_join(events: pd.DataFrame, windows: Iterable, key: str,
                      secondary: Sequence[str] = (), *, time_col: str = "timestamp",
                      id_col: str = "id", closed: str = "right",
                      max_pairs=DEFAULT_MAX_JOIN_PAIRS) -> pd.DataFrame:
    """
    Window counts (and distinct counts) by brute-force self-join.

    Args:
        events: Event table (not modified)
        windows: Window lengths; one join serves all of them
        key: Column to join on
        secondary: Columns to distinct-count inside each window
        time_col: Numeric timestamp column (seconds)
        id_col: Unique, arrival-ordered row id
        closed: 'right' counts (t - N, t], 'both' counts [t - N, t]
        max_pairs: Largest intermediate join allowed, None for no limit

    Returns:
        DataFrame indexed by id with one column per (window[, secondary]).
        The row count of the merge on `key` is stored in `.attrs['join_pairs']`.
    """
    windows = validate_windows(windows)
    closed = validate_closed(closed)
    secondary = list(secondary)
    require_columns(events.columns, [id_col, time_col, key, *secondary])
    if not events.empty and not is_numeric_dtype(events[time_col]):
        raise ConfigurationError(
            f"Column '{time_col}' must hold numeric seconds, got {events[time_col].dtype}"
        )

    if events[id_col].duplicated().any():
        raise DataOrderingError(f"Column '{id_col}' contains duplicate ids")

    pairs = self_join_pair_count(events, key)
    if max_pairs is not None and pairs > max_pairs:
        raise JoinBlowupError(
            f"Self-join on '{key}' would materialise {pairs:,} pairs "
            f"(limit {max_pairs:,}); use the rolling counter instead"
        )

    columns = []
    for window in windows:
        columns.append(feature_column_name(window, key))
        columns.extend(feature_column_name(window, key, col) for col in secondary)

    left = events[[id_col, time_col, key]]
    right = events[[id_col, time_col, key, *secondary]].rename(
        columns={id_col: "_prior_id", time_col: "_prior_time",
                 **{col: f"_prior_{col}" for col in secondary}}
    )

    joined = left.merge(right, on=key, how="inner")
    join_pairs = len(joined)
    joined = joined[joined["_prior_id"] <= joined[id_col]]

    times = joined[time_col].to_numpy(dtype=np.float64)
    prior_times = joined["_prior_time"].to_numpy(dtype=np.float64)
    result = pd.DataFrame(index=pd.Index(np.sort(events[id_col].to_numpy()), name=id_col))

    for window in windows:
        # Same cutoff arithmetic as the rolling counter: compare against t - window
        lower = times - window
        after_lower = (prior_times > lower) if closed == "right" else (prior_times >= lower)
        in_window = after_lower & (prior_times <= times)
        grouped = joined[in_window].groupby(id_col)

        result[feature_column_name(window, key)] = grouped.size()
        for col in secondary:
            result[feature_column_name(window, key, col)] = grouped[f"_prior_{col}"].nunique()

    result = result.reindex(columns=columns).fillna(0).astype(np.int64)
    result.attrs["join_pairs"] = join_pairs
    return result
