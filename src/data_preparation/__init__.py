# src/data_preparation/__init__.py
"""
Data Preparation Module
========================

Loading and shaping the raw click log before and after feature engineering.

Modules:
    - load_events: Read CSV/Parquet click logs, parse click times, assign ids
    - downsample: Class-balanced down-sampling of non-attributed clicks
"""

# Make modules easily importable
from . import load_events
from . import downsample

__all__ = ['load_events', 'downsample']
