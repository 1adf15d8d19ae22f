"""
Exception classes for pivotgrid.

The pivot engine itself never raises for malformed data: empty stems are
filtered, unknown attributes fall back to the unknown constraint and
non-numeric values are skipped by numeric aggregation. These exceptions
signal problems at the API boundary, mostly while loading configurations.
"""


class PivotGridError(Exception):
    """Base class for all pivotgrid errors."""
    pass


class ConfigValidationError(PivotGridError, ValueError):
    """Raised when a pivot configuration cannot be constructed.

    This error is raised while deserializing or validating a configuration
    that does not describe a usable pivot. Examples:
        - Unknown aggregation, value type or expression operation name
        - Expression operand with an unknown ``type`` tag
        - Attribute reference without ``resource_id`` or ``attribute_id``
        - Unsupported configuration version
    """
    pass


class UnsupportedAggregationError(PivotGridError):
    """Raised when an aggregation function has no implementation.

    Aggregation types are closed over ``AggregationType``; this error only
    surfaces when a caller bypasses the enum and passes an arbitrary string
    straight to ``aggregate_values``.
    """
    pass
