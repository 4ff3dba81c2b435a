# src/feature_engineering/ordered_index.py

"""
Ordered per-key index with a nearest-preceding (floor / backward) match.

Entries are grouped by key and, within a key, ordered by arrival with
non-decreasing timestamps. For a cutoff (key, t) the index finds the entry of
the same key with the largest timestamp <= t. When several entries share that
timestamp, the earliest-arriving one is returned.

How it works:
    Timestamps are replaced by their rank among the distinct timestamps, and
    each entry is placed on one integer axis:

        axis = code * width + rank + 1        (width = n_distinct + 1)

    Every key owns the half-open block [code * width, (code + 1) * width) and
    the axis is sorted because entries are grouped by key and ordered by time.
    A cutoff maps to code * width + floor_rank + 1, where floor_rank is -1 when
    t lies below every known timestamp, so a single np.searchsorted answers
    all cutoffs at once: O(n log n) to build, O(log n) per cutoff.
"""

from typing import NamedTuple

import numpy as np

# Returned in place of a position when nothing precedes the cutoff
NO_MATCH = -1


class AsofMatch(NamedTuple):
    position: np.ndarray    # index of the first-arriving matched entry, NO_MATCH if none
    timestamp: np.ndarray   # matched timestamp, NaN if none
    run_length: np.ndarray  # entries of the key sharing the matched timestamp, 0 if none

    @property
    def matched(self) -> np.ndarray:
        return self.position != NO_MATCH


class OrderedKeyIndex:
    """Floor-match index over (key code, timestamp) entries."""

    def __init__(self, codes, timestamps):
        codes = np.asarray(codes, dtype=np.int64)
        timestamps = np.asarray(timestamps, dtype=np.float64)

        if codes.shape != timestamps.shape or codes.ndim != 1:
            raise ValueError("codes and timestamps must be 1-D arrays of equal length")
        if codes.size and codes.min() < 0:
            raise ValueError("key codes must be non-negative")
        if np.isnan(timestamps).any():
            raise ValueError("timestamps must not contain NaN")

        self._timestamps = timestamps
        self._levels = np.unique(timestamps)
        self._width = len(self._levels) + 1

        rank = np.searchsorted(self._levels, timestamps)
        self._axis = codes * self._width + rank + 1

        if np.any(np.diff(self._axis) < 0):
            raise ValueError(
                "entries must be grouped by key with non-decreasing timestamps"
            )

    def __len__(self) -> int:
        return len(self._axis)

    def floor_match(self, codes, cutoffs) -> AsofMatch:
        """
        Nearest preceding-or-equal entry for every (code, cutoff) pair.

        Args:
            codes: Key code of each cutoff (same coding as the index)
            cutoffs: Cutoff timestamps

        Returns:
            AsofMatch with NO_MATCH where the key has nothing at or before the cutoff
        """
        codes = np.asarray(codes, dtype=np.int64)
        cutoffs = np.asarray(cutoffs, dtype=np.float64)

        floor_rank = np.searchsorted(self._levels, cutoffs, side="right") - 1
        block_start = codes * self._width
        target = block_start + floor_rank + 1

        last = np.searchsorted(self._axis, target, side="right") - 1
        found = last >= 0
        found[found] = self._axis[last[found]] > block_start[found]

        position = np.full(cutoffs.shape, NO_MATCH, dtype=np.int64)
        timestamp = np.full(cutoffs.shape, np.nan)
        run_length = np.zeros(cutoffs.shape, dtype=np.int64)

        if found.any():
            matched_axis = self._axis[last[found]]
            first = np.searchsorted(self._axis, matched_axis, side="left")
            position[found] = first
            timestamp[found] = self._timestamps[first]
            run_length[found] = last[found] - first + 1

        return AsofMatch(position, timestamp, run_length)
