"""
Schema definitions using Pandera for output validation.
"""

from modelinsight.schemas.parameters import EMMSummarySchema, ParameterTableSchema

__all__ = [
    "EMMSummarySchema",
    "ParameterTableSchema",
]
