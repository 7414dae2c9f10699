"""
Face comparison: threshold classification and gallery scans.

``MatchClassifier`` scores one pair of embeddings with a dot product and
classifies the score against two inclusive thresholds. ``FaceScanComparator``
runs the classifier over a gallery and collects the result into a
``ScanReport``.

Example:
    ```python
    comparator = FaceScanComparator.from_config(
        MatchConfig(positive_scan_return_type=PositiveScanReturnType.RETURN_BEST_MATCH)
    )
    report = comparator.scan(probe_face, known_faces)
    if report.has_positive_match:
        print(report.positive_match.face.tag, report.max_confidence_score)
    ```

Note:
    Embeddings are expected to be L2-normalized so that the dot product is the
    cosine similarity, but nothing here requires it.
"""
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from facescan.core.exceptions import NullInputError, ScanCancelledError
from facescan.core.logging import get_logger
from facescan.domain.value_objects.recognition import (
    ComparisonResult,
    FaceScanMatch,
    MatchType,
    PositiveScanReturnType,
    ScanReport,
)
from facescan.services.vector_operations import dot

logger = get_logger(__name__)


class MatchConfig(BaseModel):
    """Thresholds and scan strategy for face comparison."""
    positive_match_threshold: float = Field(0.42, description="Minimum score for a positive match")
    potential_match_threshold: float = Field(0.18, description="Minimum score for a potential match")
    positive_scan_return_type: PositiveScanReturnType = Field(
        PositiveScanReturnType.RETURN_FIRST_MATCH,
        description="Whether a scan stops at the first positive match or looks for the best one"
    )

    model_config = ConfigDict(frozen=True)


class MatchClassifier:
    """Classifies the similarity of two embeddings."""

    def __init__(
        self,
        positive_match_threshold: float = 0.42,
        potential_match_threshold: float = 0.18,
    ) -> None:
        if positive_match_threshold < potential_match_threshold:
            logger.warning(
                "Positive match threshold is below potential match threshold",
                positive_match_threshold=positive_match_threshold,
                potential_match_threshold=potential_match_threshold
            )
        self.positive_match_threshold = positive_match_threshold
        self.potential_match_threshold = potential_match_threshold

    def classify(self, detected_face: Any, comparison: Any) -> ComparisonResult:
        """
        Compare two faces and classify their similarity.

        Args:
            detected_face: Embedding or FaceModel of the scanned face
            comparison: Embedding or FaceModel to compare against

        Returns:
            ComparisonResult with the similarity score and match type

        Raises:
            NullInputError: If either face is missing
            LengthMismatchError: If the embeddings differ in length
        """
        if detected_face is None:
            raise NullInputError("detected_face must not be None")
        if comparison is None:
            raise NullInputError("comparison must not be None")

        similarity_score = dot(detected_face, comparison)
        if similarity_score >= self.positive_match_threshold:
            match_type = MatchType.POSITIVE_MATCH
        elif similarity_score >= self.potential_match_threshold:
            match_type = MatchType.POTENTIAL_MATCH
        else:
            match_type = MatchType.NO_MATCH

        logger.debug(
            "Comparison result",
            similarity_score=similarity_score,
            result_type=match_type.value
        )
        return ComparisonResult(match_type=match_type, similarity_score=similarity_score)


class FaceScanComparator:
    """Compares a scanned face against a gallery of known faces."""

    def __init__(
        self,
        classifier: Optional[MatchClassifier] = None,
        positive_scan_return_type: PositiveScanReturnType = PositiveScanReturnType.RETURN_FIRST_MATCH,
    ) -> None:
        self.classifier = classifier or MatchClassifier()
        self.positive_scan_return_type = positive_scan_return_type

    @classmethod
    def from_config(cls, config: MatchConfig) -> "FaceScanComparator":
        """Build a comparator from a MatchConfig."""
        classifier = MatchClassifier(
            positive_match_threshold=config.positive_match_threshold,
            potential_match_threshold=config.potential_match_threshold,
        )
        return cls(classifier, config.positive_scan_return_type)

    @property
    def positive_match_threshold(self) -> float:
        return self.classifier.positive_match_threshold

    @property
    def potential_match_threshold(self) -> float:
        return self.classifier.potential_match_threshold

    def compare_face_scan_models(self, detected_face: Any, comparison: Any) -> ComparisonResult:
        """Compare two faces; see MatchClassifier.classify."""
        return self.classifier.classify(detected_face, comparison)

    def compare_model_against_face_scans(
        self,
        scanned_face: Any,
        face_scans: Optional[Iterable[Any]],
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> ScanReport:
        """
        Compare a scanned face against a gallery to find potential and positive matches.

        Candidates classified as no match are dropped. Under RETURN_FIRST_MATCH
        the scan stops at the first positive match; under RETURN_BEST_MATCH the
        whole gallery is scanned and the highest scoring positive match is kept
        (the earliest one on ties).

        Args:
            scanned_face: Probe embedding or FaceModel
            face_scans: Gallery candidates, compared in iteration order
            should_cancel: Optional callable checked before each comparison

        Returns:
            ScanReport with the retained matches, positive match and max confidence

        Raises:
            NullInputError: If the probe, the gallery or a candidate is missing
            LengthMismatchError: If any candidate's embedding length differs from the probe's
            ScanCancelledError: If should_cancel returned True
        """
        if scanned_face is None:
            raise NullInputError("scanned_face must not be None")
        if face_scans is None:
            raise NullInputError("face_scans must not be None")

        report = ScanReport()
        for index, face in enumerate(face_scans):
            if should_cancel is not None and should_cancel():
                raise ScanCancelledError("Face scan comparison cancelled", {"compared": index})

            comparison = self.classifier.classify(scanned_face, face)
            if comparison.match_type == MatchType.NO_MATCH:
                continue

            match = FaceScanMatch(face=face, comparison=comparison)
            report.potential_matches.append(match)

            if comparison.match_type != MatchType.POSITIVE_MATCH:
                continue
            if self.positive_scan_return_type == PositiveScanReturnType.RETURN_FIRST_MATCH:
                report.positive_match = match
                report.max_confidence_score = match.similarity_score
                break
            if report.positive_match is None or match.similarity_score > report.positive_match.similarity_score:
                report.positive_match = match
                report.max_confidence_score = match.similarity_score

        if not report.has_positive_match and report.potential_matches:
            report.max_confidence_score = max(m.similarity_score for m in report.potential_matches)

        logger.debug(
            "Face scan comparison completed",
            result_type=report.result_type.value,
            matches=len(report.potential_matches),
            max_confidence_score=report.max_confidence_score
        )
        return report

    scan = compare_model_against_face_scans
