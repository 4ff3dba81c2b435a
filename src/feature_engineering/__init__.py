# src/feature_engineering/__init__.py

"""
Feature Engineering Module

Time-window count features for click-fraud detection.

Modules:
    - window_config: WindowFeature descriptors, column naming, WindowFeatureConfig
    - ordered_index: Per-key floor (nearest preceding) match index
    - rolling_counts: Rolling window counts via cumulative counts (O(n log n))
    - naive_join: Self-join window counts and distinct counts (reference oracle)
    - multi_window: Runs every (window, attribute) pair and joins the results by id
    - errors: ConfigurationError, DataOrderingError, JoinBlowupError

Usage:
    from feature_engineering import WindowFeatureConfig, build_window_features

    config = WindowFeatureConfig(windows=[2, 60, 300], key_attributes=['ip', 'app'])
    features = build_window_features(clicks, config)   # adds ip2s, ip60s, ...

Note:
    - Clicks must be chronological within each key (checked, never re-sorted)
    - Distinct counts (e.g. app_device2s) need mode='naive-join'
"""

from .errors import (
    ConfigurationError,
    DataOrderingError,
    JoinBlowupError,
    WindowFeatureError,
)
from .multi_window import build_window_features, merge_window_results
from .naive_join import naive_window_join, self_join_pair_count
from .ordered_index import NO_MATCH, AsofMatch, OrderedKeyIndex
from .rolling_counts import cumulative_counts, rolling_window_count
from .window_config import (
    NAIVE_JOIN,
    ROLLING,
    WindowFeature,
    WindowFeatureConfig,
    feature_column_name,
)

__all__ = [
    'AsofMatch',
    'ConfigurationError',
    'DataOrderingError',
    'JoinBlowupError',
    'NAIVE_JOIN',
    'NO_MATCH',
    'OrderedKeyIndex',
    'ROLLING',
    'WindowFeature',
    'WindowFeatureConfig',
    'WindowFeatureError',
    'build_window_features',
    'cumulative_counts',
    'feature_column_name',
    'merge_window_results',
    'naive_window_join',
    'rolling_window_count',
    'self_join_pair_count',
]
