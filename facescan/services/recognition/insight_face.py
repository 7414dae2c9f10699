"""
InsightFace-based implementation of the face scan generator.

This module produces the embeddings consumed by the matching engine. It
handles image decoding, face detection, landmark extraction, embedding
generation and age/gender estimation through InsightFace's model bundle.

Key Features:
    - Face detection with confidence filtering
    - Five-point landmarks and pixel bounding boxes
    - L2-normalized embeddings (dot product == cosine similarity)
    - Optional age/gender classification
    - Model inference off the event loop

Example:
    ```python
    async with InsightFaceScanGenerator() as scanner:
        with open("image.jpg", "rb") as f:
            faces = await scanner.perform_face_scan(f.read())
    ```

Note:
    Requires the ``recognition`` extra (insightface, onnxruntime, opencv).
"""
import asyncio
import math
from typing import Any, List, Optional, TypeVar

import cv2
import numpy as np
from insightface.app import FaceAnalysis

from facescan.core.config import settings
from facescan.core.exceptions import InvalidImageError, ModelLoadError
from facescan.core.logging import get_logger
from facescan.domain.entities.face import (
    BoundingBox,
    Gender,
    Landmark,
    ScannedFace,
    ScannedFaceWithClassifiers,
)
from facescan.domain.interfaces.recognition.face_scan_generator import FaceScanGenerator

logger = get_logger(__name__)

# Type variable for context manager
T = TypeVar('T', bound='InsightFaceScanGenerator')


class InsightFaceScanGenerator(FaceScanGenerator):
    """
    InsightFace-based face scan generator.

    Attributes:
        model: InsightFace FaceAnalysis instance
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        use_cuda: Optional[bool] = None,
    ) -> None:
        """Load and prepare the InsightFace model bundle."""
        self.model_name = model_name or settings.MODEL_NAME
        self.use_cuda = settings.USE_CUDA if use_cuda is None else use_cuda
        providers = ['CPUExecutionProvider']
        if self.use_cuda:
            providers.insert(0, 'CUDAExecutionProvider')

        try:
            self.model = FaceAnalysis(
                name=self.model_name,
                root=settings.MODEL_CACHE_DIR,
                providers=providers
            )
            self.model.prepare(ctx_id=0 if self.use_cuda else -1, det_size=tuple(settings.DETECTION_SIZE))
        except Exception as e:
            logger.error(
                "Failed to load face analysis model",
                model_name=self.model_name,
                error=str(e),
                exc_info=True
            )
            raise ModelLoadError(f"Failed to load face analysis model: {str(e)}", {"model_name": self.model_name})

        logger.info("Face analysis model loaded", model_name=self.model_name, providers=providers)

    async def __aenter__(self: T) -> T:
        """Enter async context, ensuring resources are ready."""
        logger.debug("Entering InsightFace scanner context")
        return self

    async def __aexit__(self, exc_type: Optional[type], exc_val: Optional[Exception],
                        exc_tb: Optional[Any]) -> None:
        """Exit async context and release the model."""
        logger.debug("Cleaning up InsightFace scanner resources")
        if exc_type:
            logger.error(
                "Error occurred during context exit",
                error=str(exc_val),
                exc_info=True
            )
        self.model = None

    def _load_and_validate_image(self, image_bytes: bytes) -> np.ndarray:
        """Decode image bytes, downscaling images above MAX_IMAGE_PIXELS."""
        if not image_bytes:
            raise InvalidImageError("Empty image")

        nparr = np.frombuffer(image_bytes, np.uint8)
        img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if img is None:
            raise InvalidImageError("Failed to decode image")

        height, width = img.shape[:2]
        pixels = width * height
        if pixels > settings.MAX_IMAGE_PIXELS:
            scale = math.sqrt(settings.MAX_IMAGE_PIXELS / pixels)
            new_width = int(width * scale)
            new_height = int(height * scale)

            logger.info(
                "Resizing large image",
                original_size=(width, height),
                new_size=(new_width, new_height)
            )
            img = cv2.resize(img, (new_width, new_height), interpolation=cv2.INTER_AREA)

        return img

    async def _process_image(self, image: np.ndarray, max_faces: Optional[int] = None) -> List[Any]:
        """Run detection, landmarks, embedding and age/gender on a worker thread."""
        if self.model is None:
            raise ModelLoadError("Face analysis model has been released")

        faces = await asyncio.to_thread(self.model.get, image, max_num=max_faces or 0)
        detected = len(faces)
        faces = [face for face in faces if float(face.det_score) >= settings.MIN_FACE_CONFIDENCE]
        if max_faces is not None:
            faces = faces[:max_faces]

        logger.info(
            "Detected faces in the provided image",
            detected=detected,
            kept=len(faces),
            max_faces=max_faces
        )
        return faces

    def _convert_to_scanned_face(self, face_data: Any) -> ScannedFace:
        """Convert an InsightFace detection into a ScannedFace."""
        x1, y1, x2, y2 = (float(v) for v in face_data.bbox[:4])
        landmarks = []
        if getattr(face_data, "kps", None) is not None:
            landmarks = [Landmark(x=float(x), y=float(y)) for x, y in face_data.kps]

        embedding = getattr(face_data, "normed_embedding", None)
        if embedding is None:
            embedding = face_data.embedding

        return ScannedFace(
            coordinates=BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1),
            landmarks=landmarks,
            embedding=embedding,
            confidence=float(face_data.det_score),
        )

    async def perform_face_scan(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[ScannedFace]:
        """Detect faces and generate their embeddings."""
        img = self._load_and_validate_image(image_bytes)
        faces = await self._process_image(img, max_faces)
        scanned = [self._convert_to_scanned_face(face) for face in faces]
        logger.info("Face scan completed", faces_processed=len(scanned))
        return scanned

    async def perform_face_scan_with_classifiers(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[ScannedFaceWithClassifiers]:
        """Detect faces, generate embeddings and attach age/gender estimates."""
        img = self._load_and_validate_image(image_bytes)
        faces = await self._process_image(img, max_faces)

        scanned: List[ScannedFaceWithClassifiers] = []
        for count, face in enumerate(faces, 1):
            gender = None
            if getattr(face, "gender", None) is not None:
                # InsightFace's genderage model: 1 = male, 0 = female
                gender = Gender.MALE if int(face.gender) == 1 else Gender.FEMALE
            age = int(round(float(face.age))) if getattr(face, "age", None) is not None else None

            result = ScannedFaceWithClassifiers.from_scanned_face(
                self._convert_to_scanned_face(face), gender=gender, age=age
            )
            logger.info(
                f"Face {count} of {len(faces)}",
                confidence=result.confidence,
                gender=gender.value if gender else None,
                age=age
            )
            scanned.append(result)

        logger.info("Face scan completed", faces_processed=len(scanned))
        return scanned
