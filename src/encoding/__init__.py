# src/encoding/__init__.py

"""
Encoding Module

Mean (target) encoding of categorical click attributes (ip, app, device, os,
channel): each category becomes its smoothed attribution rate, computed
out-of-fold to avoid leaking the row's own label.
"""

from . import mean_encode

__all__ = [
    'mean_encode'
]
