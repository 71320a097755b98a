"""
Typed configuration models using Pydantic.

Defaults here reproduce the library's documented behaviour; a YAML file
only needs to list the values it overrides.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ColorTheme(str, Enum):
    """Console colour theme."""

    DARK = "dark"
    LIGHT = "light"


class VarianceConfig(BaseModel):
    """Defaults for variance decomposition of mixed models."""

    model_config = ConfigDict(frozen=True)

    tolerance: float = Field(
        default=1e-5,
        gt=0,
        description="Singularity tolerance for random-effect variances",
    )
    verbose: bool = Field(default=True, description="Emit warnings")


class ConsoleConfig(BaseModel):
    """Coloured console output configuration."""

    model_config = ConfigDict(frozen=True)

    color: bool = Field(default=True, description="Enable ANSI colour output")
    theme: ColorTheme | None = Field(
        default=None,
        description="Force a colour theme instead of detecting it",
    )


class DependencyConfig(BaseModel):
    """Configuration for package installation checks."""

    model_config = ConfigDict(frozen=True)

    reason: str = Field(
        default="for this function to work",
        description="Default phrase explaining why a package is needed",
    )
    installer: str = Field(
        default="pip install",
        description="Command suggested to install missing packages",
    )

    @field_validator("installer")
    @classmethod
    def validate_installer(cls, v: str) -> str:
        """Ensure the installer command is not blank."""
        if not v.strip():
            msg = "installer must be a non-empty command"
            raise ValueError(msg)
        return v.strip()


class InsightConfig(BaseModel):
    """Complete modelinsight configuration."""

    model_config = ConfigDict(frozen=True)

    variance: VarianceConfig = Field(default_factory=VarianceConfig)
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)
    dependencies: DependencyConfig = Field(default_factory=DependencyConfig)
