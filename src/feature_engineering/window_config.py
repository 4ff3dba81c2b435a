# src/feature_engineering/window_config.py

"""
Window feature configuration and output column naming.

Each output column is described by a WindowFeature:
- (60, 'ip')            -> 'ip60s'         simple count
- (2, 'app', 'device')  -> 'app_device2s'  distinct count of device per app

The descriptor replaces building variable names from strings at run time:
the column name is always derived from the tuple through feature_column_name().
"""

import math
import numbers
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .errors import ConfigurationError

ROLLING = "rolling"
NAIVE_JOIN = "naive-join"
MODES = (ROLLING, NAIVE_JOIN)

# 'right' -> window (t - N, t]   'both' -> window [t - N, t]
CLOSED_CHOICES = ("right", "both")

# Upper bound on rows the naive self-join may materialise
DEFAULT_MAX_JOIN_PAIRS = 50_000_000


def format_window(window) -> str:
    """Render a window length for a column name (60.0 -> '60', 0.5 -> '0.5')."""
    if float(window).is_integer():
        return str(int(window))
    return f"{window:g}"


def feature_column_name(window, key: str, secondary: Optional[str] = None) -> str:
    if secondary is None:
        return f"{key}{format_window(window)}s"
    return f"{key}_{secondary}{format_window(window)}s"


def validate_window(window):
    """Return the window unchanged if it is a finite positive number."""
    if isinstance(window, bool) or not isinstance(window, numbers.Real):
        raise ConfigurationError(f"Window length must be numeric, got {window!r}")
    if not math.isfinite(window) or window <= 0:
        raise ConfigurationError(f"Window length must be positive, got {window!r}")
    return window


def validate_windows(windows: Iterable) -> list:
    """Validate a collection of window lengths and return them ascending."""
    windows = list(windows)
    if not windows:
        raise ConfigurationError("At least one window length is required")
    for window in windows:
        validate_window(window)
    if len(set(windows)) != len(windows):
        raise ConfigurationError(f"Duplicate window lengths in {windows}")
    return sorted(windows)


def validate_closed(closed: str) -> str:
    if closed not in CLOSED_CHOICES:
        raise ConfigurationError(
            f"closed must be one of {CLOSED_CHOICES}, got {closed!r}"
        )
    return closed


def require_columns(columns: Iterable[str], required: Iterable[str]) -> None:
    columns = set(columns)
    missing = [col for col in required if col not in columns]
    if missing:
        raise ConfigurationError(f"Unknown column(s): {missing}")


@dataclass(frozen=True)
class WindowFeature:
    """One output column: a count (or distinct count) over a trailing window."""

    window: float
    key: str
    secondary: Optional[str] = None

    @property
    def column(self) -> str:
        return feature_column_name(self.window, self.key, self.secondary)

    @property
    def is_distinct(self) -> bool:
        return self.secondary is not None


@dataclass(frozen=True)
class WindowFeatureConfig:
    """
    Options for MultiWindowDriver.

    Attributes:
        windows: Trailing window lengths, in the same units as the time column
        key_attributes: Columns to group events by before counting
        secondary_attributes: Columns for distinct counts (naive-join mode only)
        mode: 'rolling' (cumulative-count trick) or 'naive-join' (self-join oracle)
        closed: 'right' for (t - N, t], 'both' for [t - N, t]
        n_jobs: Worker threads used to fan out (window, attribute) pairs
        max_join_pairs: Pair budget for the naive join, None disables the guard
    """

    windows: Sequence = (2, 60, 300)
    key_attributes: Sequence[str] = ("ip",)
    secondary_attributes: Sequence[str] = ()
    mode: str = ROLLING
    closed: str = "right"
    time_col: str = "timestamp"
    id_col: str = "id"
    n_jobs: int = 1
    max_join_pairs: Optional[int] = DEFAULT_MAX_JOIN_PAIRS

    def validate(self, columns: Optional[Iterable[str]] = None) -> None:
        """
        Reject the whole request before anything is computed.

        Args:
            columns: Columns of the event table; attribute names are checked
                     against it when given
        """
        validate_windows(self.windows)
        validate_closed(self.closed)

        if self.mode not in MODES:
            raise ConfigurationError(f"mode must be one of {MODES}, got {self.mode!r}")

        keys = list(self.key_attributes)
        secondaries = list(self.secondary_attributes)
        if not keys:
            raise ConfigurationError("At least one key attribute is required")
        if len(set(keys)) != len(keys):
            raise ConfigurationError(f"Duplicate key attributes in {keys}")
        if len(set(secondaries)) != len(secondaries):
            raise ConfigurationError(f"Duplicate secondary attributes in {secondaries}")

        if secondaries and self.mode == ROLLING:
            raise ConfigurationError(
                "Distinct counts need the naive-join mode; "
                "the rolling counter only produces simple counts"
            )
        overlap = set(keys) & set(secondaries)
        if overlap:
            raise ConfigurationError(
                f"Attributes cannot be both key and secondary: {sorted(overlap)}"
            )

        if isinstance(self.n_jobs, bool) or not isinstance(self.n_jobs, int) or self.n_jobs == 0:
            raise ConfigurationError(f"n_jobs must be a non-zero integer, got {self.n_jobs!r}")

        if columns is not None:
            columns = list(columns)
            require_columns(columns, [self.id_col, self.time_col, *keys, *secondaries])
            clashes = [f.column for f in self.features() if f.column in columns]
            if clashes:
                raise ConfigurationError(f"Output column(s) already present: {clashes}")

    def features(self) -> list:
        """Descriptors in output order: per attribute, windows ascending."""
        features = []
        for key in self.key_attributes:
            for window in sorted(self.windows):
                features.append(WindowFeature(window, key))
                if self.mode == NAIVE_JOIN:
                    for secondary in self.secondary_attributes:
                        features.append(WindowFeature(window, key, secondary))
        return features
