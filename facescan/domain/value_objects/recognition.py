"""Face matching value objects."""
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchType(str, Enum):
    """Classification of a single face comparison."""
    NO_MATCH = "no_match"
    POTENTIAL_MATCH = "potential_match"
    POSITIVE_MATCH = "positive_match"


class PositiveScanReturnType(str, Enum):
    """Strategy for returning positive matches during a gallery scan."""
    # Stop at the first positive match
    RETURN_FIRST_MATCH = "first"
    # Scan the whole gallery and keep the highest scoring positive match
    RETURN_BEST_MATCH = "best"


class AggregateUpdateType(str, Enum):
    """Direction of an aggregate model update."""
    ADD = "add"
    REMOVE = "remove"


class ComparisonResult(BaseModel):
    """Result of comparing two embeddings."""
    match_type: MatchType = Field(..., description="Classification of the comparison")
    similarity_score: float = Field(..., description="Dot product similarity of the two embeddings")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.match_type.value} ({self.similarity_score:.4f})"


class FaceScanMatch(BaseModel):
    """A gallery candidate together with its comparison result."""
    face: Any = Field(..., description="Gallery candidate, as passed to the scan")
    comparison: ComparisonResult = Field(..., description="Comparison of the probe against the candidate")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @property
    def similarity_score(self) -> float:
        return self.comparison.similarity_score

    @property
    def match_type(self) -> MatchType:
        return self.comparison.match_type


class ScanReport(BaseModel):
    """Result of comparing one probe face against a gallery."""
    positive_match: Optional[FaceScanMatch] = Field(None, description="Selected positive match, if any")
    potential_matches: List[FaceScanMatch] = Field(
        default_factory=list,
        description="Every candidate that was not classified as no match, in gallery order"
    )
    max_confidence_score: float = Field(0.0, description="Highest similarity score observed")

    @property
    def has_positive_match(self) -> bool:
        return self.positive_match is not None

    @property
    def result_type(self) -> MatchType:
        if self.has_positive_match:
            return MatchType.POSITIVE_MATCH
        if self.potential_matches:
            return MatchType.POTENTIAL_MATCH
        return MatchType.NO_MATCH

    def get_matches_by_similarity_score(self) -> List[FaceScanMatch]:
        """Return the retained matches ranked from highest to lowest score."""
        return sorted(self.potential_matches, key=lambda m: m.similarity_score, reverse=True)
