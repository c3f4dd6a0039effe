"""Configuration and encapsulation rules for archmap."""

from rules.config import (
    AnalyzerConfig,
    ConfigError,
    load_config,
)
from rules.encapsulation import (
    classify_name,
    has_implementation_marker,
    has_unstable_marker,
    is_documented_unstable,
)

__all__ = [
    "AnalyzerConfig",
    "ConfigError",
    "classify_name",
    "has_implementation_marker",
    "has_unstable_marker",
    "is_documented_unstable",
    "load_config",
]
