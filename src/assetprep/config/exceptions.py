"""Errors raised while loading or resolving assetprep configuration."""


class ConfigError(Exception):
    """Raised when configuration data from any source is invalid."""
