"""
Config and table serialization utilities.

Provides JSON serialization for pivot configurations and laid-out tables. The
serialized config is wrapped in an envelope carrying a format version so that
stored configurations can be validated before they are loaded.
"""

import json
from typing import Any, Dict, List

from ..exceptions import ConfigValidationError
from ..model.config import PivotConfig
from ..model.table import PivotTable

# Current serialization format version
SERIALIZATION_VERSION = "1.0"


def serialize_config(config: PivotConfig) -> Dict[str, Any]:
    """Serialize a pivot config to a JSON-serializable dictionary.

    The serialized format includes:
    - version: Envelope format version
    - config: The config itself, with its own ``version`` field

    Args:
        config: The pivot config to serialize

    Returns:
        Dictionary that can be serialized to JSON

    Raises:
        TypeError: If config is not a PivotConfig instance

    Example:
        >>> data = serialize_config(PivotConfig(stems_configs=[StemConfig()]))
        >>> assert data["version"] == "1.0"
        >>> assert data["config"]["merge_tables"] is True
    """
    if not isinstance(config, PivotConfig):
        raise TypeError(f"Expected PivotConfig, got {type(config)}")

    return {
        "version": SERIALIZATION_VERSION,
        "config": config.to_dict(),
    }


def deserialize_config(data: Dict[str, Any]) -> PivotConfig:
    """Deserialize a pivot config from a dictionary.

    Args:
        data: Dictionary produced by ``serialize_config``

    Returns:
        Reconstructed PivotConfig instance

    Raises:
        TypeError: If data is not a dictionary
        ValueError: If the envelope is missing fields or has another version
        ConfigValidationError: If the config itself is invalid
    """
    if not isinstance(data, dict):
        raise TypeError(f"Expected dict, got {type(data)}")

    if "version" not in data:
        raise ValueError("Serialized config must have 'version' field")
    if "config" not in data:
        raise ValueError("Serialized config must have 'config' field")

    version = data["version"]
    if version != SERIALIZATION_VERSION:
        raise ValueError(
            f"Unsupported serialization version: {version}. "
            f"Expected {SERIALIZATION_VERSION}"
        )

    try:
        return PivotConfig.from_dict(data["config"])
    except (KeyError, TypeError, AttributeError) as e:
        raise ConfigValidationError(f"Failed to deserialize pivot config: {e}") from e


def config_to_json(config: PivotConfig, **kwargs) -> str:
    """Serialize a pivot config to a JSON string.

    Args:
        config: The pivot config to serialize
        **kwargs: Additional arguments to pass to json.dumps (e.g., indent=2)
    """
    return json.dumps(serialize_config(config), **kwargs)


def config_from_json(json_str: str) -> PivotConfig:
    """Deserialize a pivot config from a JSON string.

    Raises:
        TypeError: If json_str is not a string
        ValueError: If JSON is invalid or the envelope is invalid
        ConfigValidationError: If the config itself is invalid
    """
    if not isinstance(json_str, str):
        raise TypeError(f"Expected str, got {type(json_str)}")

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    return deserialize_config(data)


def table_to_dict(table: PivotTable) -> Dict[str, Any]:
    if not isinstance(table, PivotTable):
        raise TypeError(f"Expected PivotTable, got {type(table)}")
    return table.to_dict()


def tables_to_json(tables: List[PivotTable], **kwargs) -> str:
    """Serialize laid-out tables to a JSON string (write-only format)."""
    return json.dumps({"version": SERIALIZATION_VERSION, "tables": [table_to_dict(t) for t in tables]},
                      default=str, **kwargs)
