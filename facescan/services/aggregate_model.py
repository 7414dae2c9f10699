"""Aggregate face model generation and maintenance."""
from typing import Any, Iterable, Optional, TypeVar

from facescan.core.exceptions import NullInputError
from facescan.core.logging import get_logger
from facescan.domain.entities.face import AggregateFaceModel
from facescan.domain.value_objects.recognition import AggregateUpdateType
from facescan.services.vector_operations import (
    add_vector_to_average,
    as_vector,
    create_average_of_vectors,
    remove_vector_from_average,
)

logger = get_logger(__name__)

TModel = TypeVar("TModel", bound=AggregateFaceModel)


class AggregateModelGenerator:
    """Builds and maintains running-average identity models.

    Example:
        ```python
        generator = AggregateModelGenerator()
        model = generator.create_aggregate_model([face_a, face_b])
        generator.update_aggregate_model(model, face_c.embedding, AggregateUpdateType.ADD)
        ```
    """

    def create_aggregate_model(self, face_models: Optional[Iterable[Any]]) -> AggregateFaceModel:
        """
        Create an aggregate model from a batch of faces.

        Args:
            face_models: Embeddings or FaceModel instances of one identity

        Returns:
            AggregateFaceModel averaging every input, with sample_count = len(face_models)

        Raises:
            NullInputError: If face_models is None
            EmptyInputError: If face_models is empty
            LengthMismatchError: If the embeddings differ in length
        """
        if face_models is None:
            raise NullInputError("face_models must not be None")
        vectors = [as_vector(model, "face_models[%d]" % i) for i, model in enumerate(face_models)]
        average = create_average_of_vectors(vectors)
        logger.debug("Created aggregate model", sample_count=len(vectors), dimensions=int(average.shape[0]))
        return AggregateFaceModel(sample_count=len(vectors), vector=average)

    def create_empty_aggregate_model(self) -> AggregateFaceModel:
        """Create an aggregate model with no samples; its first ADD sets the vector."""
        return AggregateFaceModel.empty()

    def update_aggregate_model(
        self,
        existing_model: TModel,
        update_vector: Any,
        update_type: AggregateUpdateType,
    ) -> TModel:
        """
        Add a sample to, or remove a sample from, an aggregate model in place.

        The new vector is computed first; the vector and the sample count are
        then replaced together, so a failed update leaves the model untouched.

        Args:
            existing_model: Model to update
            update_vector: Embedding (or FaceModel) to add or remove
            update_type: AggregateUpdateType (or its value, "add" / "remove")

        Returns:
            The same model instance, updated

        Raises:
            NullInputError: If the model or the vector is missing
            LengthMismatchError: If the vector does not match the model's length
            UndefinedAverageError: When removing from a model with fewer than two samples
            ValueError: If update_type is not a known AggregateUpdateType
        """
        if existing_model is None:
            raise NullInputError("existing_model must not be None")
        update_type = AggregateUpdateType(update_type)

        count = existing_model.sample_count
        if update_type == AggregateUpdateType.ADD:
            new_vector = add_vector_to_average(existing_model.vector, count, update_vector)
            new_count = count + 1
        else:
            new_vector = remove_vector_from_average(existing_model.vector, count, update_vector)
            new_count = count - 1

        existing_model.update_model(new_vector, new_count)
        logger.debug(
            "Updated aggregate model",
            update_type=update_type.value,
            sample_count=new_count
        )
        return existing_model
