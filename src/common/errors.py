# ABOUTME: Declares the exception hierarchy raised across the analytics engines.
# ABOUTME: Separates collaborator failures from configuration and input problems.


class AnalyticsError(Exception):
    """Base class for engine errors."""


class StoreError(AnalyticsError):
    """A persistence collaborator failed (connection loss, rejected write)."""


class RecordNotFoundError(StoreError, KeyError):
    """A lookup by id found nothing."""


class ConfigError(AnalyticsError, ValueError):
    """Configuration file is missing keys, has unknown keys, or bad values."""


class UnsupportedTimeframeError(AnalyticsError, ValueError):
    """Comparative analytics was asked for a timeframe it does not know."""
