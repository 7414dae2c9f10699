"""
Vector operations used by face matching and aggregation.

All functions are pure: they never modify their inputs and always return a
new read-only ``float64`` vector (or a float for ``dot``).

Example:
    ```python
    average = create_average_of_vectors([[2, 4], [4, 8]])   # [3, 6]
    average = add_vector_to_average(average, 2, [6, 12])    # [4, 8]
    average = remove_vector_from_average(average, 3, [6, 12])  # [3, 6]
    ```
"""
from typing import Any, Iterable, Optional

import numpy as np

from facescan.core.exceptions import (
    EmptyInputError,
    InvalidEmbeddingError,
    LengthMismatchError,
    NullInputError,
    UndefinedAverageError,
)
from facescan.domain.entities.face import freeze_embedding
from facescan.domain.interfaces.face_model import FaceModel


def as_vector(value: Any, name: str = "vector") -> np.ndarray:
    """
    Coerce an embedding or a face model into a read-only 1-D vector.

    Args:
        value: Embedding (array-like) or FaceModel exposing one
        name: Argument name used in error messages

    Raises:
        NullInputError: If the value (or the face model's embedding) is missing
        InvalidEmbeddingError: If the value cannot be read as numbers
        LengthMismatchError: If the value is not one-dimensional
    """
    if value is None:
        raise NullInputError(f"{name} must not be None")
    if isinstance(value, FaceModel):
        value = value.get_vectors()
        if value is None:
            raise NullInputError(f"{name} has no embedding")
    if not (isinstance(value, np.ndarray) and value.dtype == np.float64):
        try:
            value = np.asarray(value, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidEmbeddingError(f"{name} must be numeric: {e}") from e
    if value.ndim != 1:
        raise LengthMismatchError(f"{name} must be one-dimensional", {"ndim": int(value.ndim)})
    if not value.flags.writeable:
        return value
    return freeze_embedding(value)


def _check_lengths(a: np.ndarray, b: np.ndarray, message: str) -> None:
    if a.shape[0] != b.shape[0]:
        raise LengthMismatchError(message, {"expected": int(a.shape[0]), "actual": int(b.shape[0])})


def dot(a: Any, b: Any) -> float:
    """Return the inner product of two equal-length vectors."""
    va = as_vector(a, "a")
    vb = as_vector(b, "b")
    _check_lengths(va, vb, "Vector lengths do not match.")
    return float(np.dot(va, vb))


def create_average_of_vectors(vectors: Optional[Iterable[Any]]) -> np.ndarray:
    """
    Create an average vector from a collection of vectors.

    Args:
        vectors: The collection of vectors to generate an average from

    Returns:
        A vector of the same size as the inputs holding the mean of each coordinate

    Raises:
        NullInputError: If no collection was given
        EmptyInputError: If the collection is empty
        LengthMismatchError: If the vectors are not all the same length
    """
    if vectors is None:
        raise NullInputError("vectors must not be None")
    items = [as_vector(v, "vectors[%d]" % i) for i, v in enumerate(vectors)]
    if not items:
        raise EmptyInputError("No vectors provided.")
    length = items[0].shape[0]
    if any(v.shape[0] != length for v in items):
        raise LengthMismatchError("Vectors must all be the same length.", {"expected": int(length)})
    return freeze_embedding(np.mean(np.stack(items), axis=0))


def add_vector_to_average(average: Optional[Any], current_count: int, vector: Any) -> np.ndarray:
    """
    Add a vector to an existing average, returning the new average.

    Uses the incremental mean ``avg + (vector - avg) / (count + 1)``. At
    ``current_count == 0`` the result is ``vector`` itself whatever the
    starting average; a missing average is only accepted in that case and
    stands for the zero vector.

    Args:
        average: The current average vector
        current_count: The number of vectors that make up the current average
        vector: The new vector to add to the average

    Raises:
        UndefinedAverageError: If current_count is negative, or the average is
            missing while current_count > 0
        LengthMismatchError: If the vector is not the same size as the average
    """
    if current_count < 0:
        raise UndefinedAverageError("current_count must be >= 0", {"current_count": current_count})
    new_vector = as_vector(vector, "vector")
    if average is None:
        if current_count != 0:
            raise UndefinedAverageError(
                "An average is required when current_count > 0",
                {"current_count": current_count}
            )
        return new_vector
    avg = as_vector(average, "average")
    _check_lengths(avg, new_vector, "Vectors must be the same length.")
    return freeze_embedding(avg + (new_vector - avg) / (current_count + 1))


def remove_vector_from_average(average: Any, current_count: int, vector: Any) -> np.ndarray:
    """
    Remove a vector from an existing average, returning the new average.

    Only the inverse of ``add_vector_to_average`` when ``vector`` really is one
    of the ``current_count`` samples; nothing checks that.

    Args:
        average: The current average vector
        current_count: The number of vectors that make up the current average
        vector: The vector to remove from the average

    Raises:
        UndefinedAverageError: If current_count <= 1
        LengthMismatchError: If the vector is not the same size as the average
    """
    if current_count <= 1:
        raise UndefinedAverageError(
            "Cannot remove a vector from an average of fewer than two samples",
            {"current_count": current_count}
        )
    avg = as_vector(average, "average")
    old_vector = as_vector(vector, "vector")
    _check_lengths(avg, old_vector, "Vectors must be the same length.")
    return freeze_embedding((avg * current_count - old_vector) / (current_count - 1))
