"""Face scan generator interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.face import ScannedFace, ScannedFaceWithClassifiers


class FaceScanGenerator(ABC):
    """Interface for turning an image into scanned faces with embeddings."""

    @abstractmethod
    async def perform_face_scan(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[ScannedFace]:
        """
        Detect faces in the image and generate an embedding for each one.

        Args:
            image_bytes: Raw image data
            max_faces: Maximum number of faces to return (None for no limit)

        Returns:
            List of ScannedFace objects; empty if no face was detected

        Raises:
            InvalidImageError: If the image cannot be decoded
        """
        pass

    @abstractmethod
    async def perform_face_scan_with_classifiers(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[ScannedFaceWithClassifiers]:
        """
        Same as perform_face_scan, with age and gender estimates attached.

        Raises:
            InvalidImageError: If the image cannot be decoded
        """
        pass
