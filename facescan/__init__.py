"""Face embedding matching and aggregation.

Compares scanned faces against a gallery (positive / potential / no match)
and maintains running-average identity models.
"""
from facescan.domain.entities.face import AggregateFaceModel, ScannedFace, ScannedFaceWithClassifiers
from facescan.domain.value_objects.recognition import (
    AggregateUpdateType,
    MatchType,
    PositiveScanReturnType,
    ScanReport,
)
from facescan.services.aggregate_model import AggregateModelGenerator
from facescan.services.face_comparator import FaceScanComparator, MatchClassifier, MatchConfig

__version__ = "0.1.0"

__all__ = [
    "AggregateFaceModel",
    "AggregateModelGenerator",
    "AggregateUpdateType",
    "FaceScanComparator",
    "MatchClassifier",
    "MatchConfig",
    "MatchType",
    "PositiveScanReturnType",
    "ScanReport",
    "ScannedFace",
    "ScannedFaceWithClassifiers",
]
