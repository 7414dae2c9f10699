"""Face model capability interface."""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class FaceModel(ABC):
    """Anything that exposes a face embedding.

    The matching engine only ever reads the embedding (and optionally the
    detector confidence); coordinates, landmarks and classifier output are
    carried through untouched.
    """

    @abstractmethod
    def get_vectors(self) -> Optional[np.ndarray]:
        """Return the embedding vector of this face."""
        pass

    def get_confidence(self) -> Optional[float]:
        """Return the detector confidence, if one is known."""
        return None
