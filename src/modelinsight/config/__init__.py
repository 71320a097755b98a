"""
Configuration management with typed Pydantic models.

Provides library-wide defaults (singularity tolerance, colour output,
installation hints) and YAML-based overrides.
"""

from modelinsight.config.loader import get_config, load_config, set_config
from modelinsight.config.settings import (
    ColorTheme,
    ConsoleConfig,
    DependencyConfig,
    InsightConfig,
    VarianceConfig,
)

__all__ = [
    "ColorTheme",
    "ConsoleConfig",
    "DependencyConfig",
    "InsightConfig",
    "VarianceConfig",
    "get_config",
    "load_config",
    "set_config",
]
