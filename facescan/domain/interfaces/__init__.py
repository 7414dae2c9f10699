"""Domain interfaces package."""
from .face_model import FaceModel

__all__ = ["FaceModel"]
