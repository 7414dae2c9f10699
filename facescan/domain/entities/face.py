"""Core face domain entities."""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from facescan.domain.interfaces.face_model import FaceModel


def freeze_embedding(value: Union[np.ndarray, list, tuple]) -> np.ndarray:
    """Return a read-only 1-D float64 copy of an embedding."""
    arr = np.array(value, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"Embedding must be one-dimensional, got ndim={arr.ndim}")
    arr.flags.writeable = False
    return arr


class Gender(str, Enum):
    """Gender label produced by the classifier collaborator."""
    MALE = "male"
    FEMALE = "female"


class BoundingBox(BaseModel):
    """Face bounding box in pixel coordinates of the scanned image."""
    x: float = Field(..., description="Left coordinate of the bounding box")
    y: float = Field(..., description="Top coordinate of the bounding box")
    width: float = Field(..., description="Width of the bounding box")
    height: float = Field(..., description="Height of the bounding box")


class Landmark(BaseModel):
    """Single facial landmark point."""
    x: float = Field(..., description="X coordinate of the landmark")
    y: float = Field(..., description="Y coordinate of the landmark")

    model_config = ConfigDict(frozen=True)


class ScannedFace(BaseModel, FaceModel):
    """Face produced by a face scan: geometry, detector confidence and embedding."""
    coordinates: BoundingBox = Field(..., description="Bounding box of the face")
    landmarks: List[Landmark] = Field(default_factory=list, description="Facial landmark points")
    embedding: np.ndarray = Field(..., description="Face embedding vector")
    confidence: Optional[float] = Field(None, description="Detector confidence score")
    scan_time: datetime = Field(default_factory=datetime.now, description="When the face was scanned")
    tag: Optional[str] = Field(None, description="Free-form caller label, e.g. a subject id")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("embedding", mode="before")
    @classmethod
    def validate_embedding(cls, v: Union[np.ndarray, list]) -> np.ndarray:
        """Convert the embedding to a read-only numpy array."""
        return freeze_embedding(v)

    def get_vectors(self) -> np.ndarray:
        return self.embedding

    def get_confidence(self) -> Optional[float]:
        return self.confidence


class ScannedFaceWithClassifiers(ScannedFace):
    """Scanned face with age and gender estimates attached."""
    gender: Optional[Gender] = Field(None, description="Estimated gender")
    age: Optional[int] = Field(None, description="Estimated age in years")

    @classmethod
    def from_scanned_face(
        cls,
        face: ScannedFace,
        gender: Optional[Gender] = None,
        age: Optional[int] = None,
    ) -> "ScannedFaceWithClassifiers":
        """Attach classifier output to an existing scanned face."""
        return cls(
            coordinates=face.coordinates,
            landmarks=face.landmarks,
            embedding=face.embedding,
            confidence=face.confidence,
            scan_time=face.scan_time,
            tag=face.tag,
            gender=gender,
            age=age,
        )


class AggregateFaceModel(BaseModel, FaceModel):
    """Running mean embedding of one identity.

    ``vector`` is the arithmetic mean of the ``sample_count`` embeddings
    folded in so far. The model is not safe for concurrent mutation; callers
    serialize updates per identity.
    """
    sample_count: int = Field(0, ge=0, description="Number of embeddings folded into the average")
    vector: Optional[np.ndarray] = Field(None, description="Mean embedding")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("vector", mode="before")
    @classmethod
    def validate_vector(cls, v: Optional[Union[np.ndarray, list]]) -> Optional[np.ndarray]:
        if v is None:
            return None
        return freeze_embedding(v)

    @model_validator(mode="after")
    def check_vector_present(self) -> "AggregateFaceModel":
        if self.sample_count > 0 and self.vector is None:
            raise ValueError("An aggregate model with samples must have a vector")
        return self

    @classmethod
    def empty(cls) -> "AggregateFaceModel":
        """Create an aggregate model with no samples."""
        return cls(sample_count=0, vector=None)

    def update_model(self, vector: np.ndarray, sample_count: int) -> None:
        """Replace the mean vector and the sample count together."""
        frozen = freeze_embedding(vector)
        if sample_count < 0:
            raise ValueError("sample_count must be >= 0")
        self.vector = frozen
        self.sample_count = sample_count

    def get_vectors(self) -> Optional[np.ndarray]:
        return self.vector
