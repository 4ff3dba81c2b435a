# src/feature_engineering/errors.py

"""
Errors raised by the window feature builders.

All of them are ValueError subclasses so callers that already guard
against bad input with `except ValueError` keep working.
"""


class WindowFeatureError(ValueError):
    """Base class for window feature failures."""


class ConfigurationError(WindowFeatureError):
    """Invalid window length, unknown attribute, or unsupported mode."""


class DataOrderingError(WindowFeatureError):
    """Events break the chronological invariant the rolling counter relies on."""


class JoinBlowupError(WindowFeatureError):
    """The naive self-join would materialise more pairs than allowed."""
