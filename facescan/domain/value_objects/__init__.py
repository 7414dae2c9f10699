"""Value objects package."""
from .recognition import (
    AggregateUpdateType,
    ComparisonResult,
    FaceScanMatch,
    MatchType,
    PositiveScanReturnType,
    ScanReport,
)

__all__ = [
    "AggregateUpdateType",
    "ComparisonResult",
    "FaceScanMatch",
    "MatchType",
    "PositiveScanReturnType",
    "ScanReport",
]
