from __future__ import annotations


class ConfigurationError(ValueError):
    """Malformed user input, e.g. a drop-member spec that cannot be resolved."""


class SchemaError(ValueError):
    """A required column (parameter, grouping key, member) is missing from a table."""
