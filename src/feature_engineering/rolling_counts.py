# src/feature_engineering/rolling_counts.py

"""
Rolling time-window counts.

For every click, count the clicks sharing its key (ip, app, ...) inside the
trailing window ending at its own timestamp, itself included.

Instead of joining each click against every earlier click of the same key,
each click carries a running count of its key. The count N seconds ago is
looked up with a floor match, and the window count is the difference:

    ip 'K' at t = [0, 10, 40, 65], cumulative = [1, 2, 3, 4]
    N = 30, click at t=65: cutoff 35 -> floor match t=10 (cumulative 2)
    window (35, 65] holds 4 - 2 = 2 clicks

Cost is O(n log n) time and O(n) memory regardless of key cardinality.
Distinct counts do not decompose this way; use naive_join for those.
"""

from typing import NamedTuple

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype

from .errors import ConfigurationError, DataOrderingError
from .ordered_index import OrderedKeyIndex
from .window_config import (
    feature_column_name,
    require_columns,
    validate_closed,
    validate_window,
)


class KeyPartition(NamedTuple):
    """Events grouped by key, arrival order kept within each key."""

    codes: np.ndarray
    ids: np.ndarray
    timestamps: np.ndarray
    cumulative: np.ndarray


def partition_by_key(events: pd.DataFrame, key: str, time_col: str = "timestamp",
                     id_col: str = "id") -> KeyPartition:
    """
    Stable-group events by key and number each key's occurrences 1, 2, 3, ...

    Raises:
        DataOrderingError: duplicate ids, missing timestamps, or a timestamp
                           that goes backwards within a key
    """
    require_columns(events.columns, [id_col, time_col, key])
    if events.empty:
        empty = np.empty(0, dtype=np.int64)
        return KeyPartition(empty, empty, np.empty(0, dtype=np.float64), empty)
    if not is_numeric_dtype(events[time_col]):
        raise ConfigurationError(
            f"Column '{time_col}' must hold numeric seconds, got {events[time_col].dtype}"
        )

    ids = events[id_col].to_numpy()
    if pd.Index(ids).has_duplicates:
        raise DataOrderingError(f"Column '{id_col}' contains duplicate ids")

    timestamps = events[time_col].to_numpy(dtype=np.float64)
    if np.isnan(timestamps).any():
        raise DataOrderingError(f"Column '{time_col}' contains missing timestamps")

    # NaN keys form their own group, like any other value
    codes, _ = pd.factorize(events[key], use_na_sentinel=False)
    codes = codes.astype(np.int64)

    order = np.lexsort((ids, codes))
    codes, ids, timestamps = codes[order], ids[order], timestamps[order]

    same_key = codes[1:] == codes[:-1]
    backwards = same_key & (timestamps[1:] < timestamps[:-1])
    if backwards.any():
        offender = ids[1:][backwards].min()
        raise DataOrderingError(
            f"Events for '{key}' are not chronological: id {offender} is earlier "
            f"than a preceding event with the same {key}"
        )

    n = len(codes)
    starts = np.flatnonzero(np.r_[True, ~same_key])
    group_sizes = np.diff(np.r_[starts, n])
    cumulative = np.arange(n, dtype=np.int64) - np.repeat(starts, group_sizes) + 1

    return KeyPartition(codes, ids, timestamps, cumulative)


def cumulative_counts(events: pd.DataFrame, key: str, time_col: str = "timestamp",
                      id_col: str = "id") -> pd.Series:
    """Running count of each key value up to and including every event, by id."""
    partition = partition_by_key(events, key, time_col=time_col, id_col=id_col)
    series = pd.Series(
        partition.cumulative,
        index=pd.Index(partition.ids, name=id_col),
        name=f"{key}_cumcount",
    )
    return series.sort_index()


def rolling_window_count(events: pd.DataFrame, window, key: str, *,
                         time_col: str = "timestamp", id_col: str = "id",
                         closed: str = "right", name: str = None) -> pd.Series:
    """
    Count events sharing `key` inside the trailing window of each event.

    Args:
        events: Event table with id, time and key columns (not modified)
        window: Window length in the units of `time_col`, must be > 0
        key: Column to group by
        time_col: Numeric timestamp column (seconds)
        id_col: Unique, arrival-ordered row id
        closed: 'right' counts (t - window, t], 'both' counts [t - window, t]
        name: Name of the returned Series, defaults to '<key><window>s'

    Returns:
        int64 Series indexed by id (ascending), one entry per event

    Raises:
        ConfigurationError: bad window, closed value, or unknown column
        DataOrderingError: input breaks the per-key chronological invariant
    """
    window = validate_window(window)
    closed = validate_closed(closed)
    name = name or feature_column_name(window, key)

    partition = partition_by_key(events, key, time_col=time_col, id_col=id_col)
    cumulative = partition.cumulative
    counts = cumulative.copy()

    if len(counts):
        cutoffs = partition.timestamps - window
        index = OrderedKeyIndex(partition.codes, partition.timestamps)
        match = index.floor_match(partition.codes, cutoffs)

        hit = match.matched
        matched_cumulative = cumulative[match.position[hit]]

        # Drop every event at or before the matched timestamp
        excluded = matched_cumulative + match.run_length[hit] - 1
        if closed == "both":
            # A match exactly on the cutoff sits on the inclusive boundary:
            # keep it, so only the events before it are dropped
            on_boundary = match.timestamp[hit] == cutoffs[hit]
            excluded = np.where(on_boundary, matched_cumulative - 1, excluded)

        counts[hit] = cumulative[hit] - excluded

    result = pd.Series(counts, index=pd.Index(partition.ids, name=id_col), name=name)
    return result.sort_index()
