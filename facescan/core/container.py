"""Service container for dependency injection."""
from typing import Optional

from facescan.core.config import Settings, settings
from facescan.core.logging import get_logger
from facescan.domain.interfaces.recognition.face_scan_generator import FaceScanGenerator
from facescan.domain.value_objects.recognition import PositiveScanReturnType
from facescan.services.aggregate_model import AggregateModelGenerator
from facescan.services.face_comparator import FaceScanComparator, MatchClassifier, MatchConfig

logger = get_logger(__name__)


class ServiceContainer:
    """Container for application services.

    Builds the matching services from Settings and hands out comparators with
    per-call overrides. The face scanner is created on demand because loading
    its models is expensive and needs the optional recognition dependencies.

    Example:
        ```python
        container = ServiceContainer()
        container.initialize()

        comparator = container.face_scan_comparator
        strict = container.create_face_scan_comparator(positive_match_threshold=0.6)
        ```
    """

    def __init__(self, app_settings: Optional[Settings] = None) -> None:
        """Initialize empty container."""
        self.settings = app_settings or settings
        self.match_config: Optional[MatchConfig] = None
        self.match_classifier: Optional[MatchClassifier] = None
        self.face_scan_comparator: Optional[FaceScanComparator] = None
        self.aggregate_model_generator: Optional[AggregateModelGenerator] = None
        self.face_scanner: Optional[FaceScanGenerator] = None

    def initialize(self) -> None:
        """Initialize the matching services in dependency order."""
        self.match_config = MatchConfig(
            positive_match_threshold=self.settings.POSITIVE_MATCH_THRESHOLD,
            potential_match_threshold=self.settings.POTENTIAL_MATCH_THRESHOLD,
            positive_scan_return_type=self.settings.POSITIVE_SCAN_RETURN_TYPE,
        )
        self.match_classifier = MatchClassifier(
            positive_match_threshold=self.match_config.positive_match_threshold,
            potential_match_threshold=self.match_config.potential_match_threshold,
        )
        self.face_scan_comparator = FaceScanComparator(
            self.match_classifier,
            self.match_config.positive_scan_return_type,
        )
        self.aggregate_model_generator = AggregateModelGenerator()
        logger.debug("Service container initialized", **self.match_config.model_dump(mode="json"))

    def create_face_scan_comparator(
        self,
        positive_match_threshold: Optional[float] = None,
        potential_match_threshold: Optional[float] = None,
        positive_scan_return_type: Optional[PositiveScanReturnType] = None,
    ) -> FaceScanComparator:
        """Create a comparator from the configured defaults with the given overrides."""
        if self.match_config is None:
            self.initialize()

        overrides = {
            "positive_match_threshold": positive_match_threshold,
            "potential_match_threshold": potential_match_threshold,
            "positive_scan_return_type": positive_scan_return_type,
        }
        config = self.match_config.model_copy(
            update={key: value for key, value in overrides.items() if value is not None}
        )
        logger.debug("Creating face scan comparator with override options", **config.model_dump(mode="json"))
        return FaceScanComparator.from_config(config)

    def create_face_scanner(self) -> FaceScanGenerator:
        """Create (once) the InsightFace scanner."""
        if self.face_scanner is None:
            # Imported here so the matching services work without the recognition extra
            from facescan.services.recognition.insight_face import InsightFaceScanGenerator

            self.face_scanner = InsightFaceScanGenerator(
                model_name=self.settings.MODEL_NAME,
                use_cuda=self.settings.USE_CUDA,
            )
        return self.face_scanner

    def cleanup(self) -> None:
        """Drop service references in reverse order of initialization."""
        self.face_scanner = None
        self.aggregate_model_generator = None
        self.face_scan_comparator = None
        self.match_classifier = None
        self.match_config = None


# Global container instance
container = ServiceContainer()
