"""
Pandera schemas for parameter and marginal-means tables.
"""

from typing import Optional

import pandera as pa
from pandera.typing import Series


class ParameterTableSchema(pa.DataFrameModel):
    """
    Schema for merged parameter tables.

    Validates tables with a single ``Parameter`` column, as returned for
    coefficient tables and lists of marginal-means grids.
    """

    Parameter: Series[str] = pa.Field(description="Parameter name or value label")
    Estimate: Series[float] = pa.Field(
        nullable=True,
        description="Point estimate",
    )
    Component: Optional[Series[str]] = pa.Field(
        description="Model component the parameter belongs to",
    )

    class Config:
        """Schema configuration."""

        name = "ParameterTableSchema"
        strict = False
        coerce = True


class EMMSummarySchema(pa.DataFrameModel):
    """
    Schema for estimated-marginal-means summaries.

    Grid columns vary with the requested specs and are not validated.
    """

    SE: Series[float] = pa.Field(ge=0, nullable=True, description="Standard error")
    df: Series[float] = pa.Field(gt=0, description="Degrees of freedom")
    CI_low: Series[float] = pa.Field(nullable=True, description="Lower CI bound")
    CI_high: Series[float] = pa.Field(nullable=True, description="Upper CI bound")

    class Config:
        """Schema configuration."""

        name = "EMMSummarySchema"
        strict = False
        coerce = True
