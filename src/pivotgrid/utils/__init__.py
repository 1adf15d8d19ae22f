"""
Utility functions for pivotgrid.

This module provides:
- logging: library logger helpers
- visualization: text rendering of header trees and tables
- serialization: JSON serialization/deserialization of configs and tables
"""

from .logging import configure_logging, get_logger
from .serialization import (
    SERIALIZATION_VERSION,
    config_from_json,
    config_to_json,
    deserialize_config,
    serialize_config,
    table_to_dict,
    tables_to_json,
)
from .visualization import render_table, visualize_headers

__all__ = [
    'configure_logging',
    'get_logger',
    'visualize_headers',
    'render_table',
    'serialize_config',
    'deserialize_config',
    'config_to_json',
    'config_from_json',
    'table_to_dict',
    'tables_to_json',
    'SERIALIZATION_VERSION',
]
