"""Tests for the aggregate model generator."""
import numpy as np
import pytest

from facescan.core.exceptions import (
    EmptyInputError,
    LengthMismatchError,
    NullInputError,
    UndefinedAverageError,
)
from facescan.domain.entities.face import AggregateFaceModel, BoundingBox, ScannedFace
from facescan.domain.value_objects.recognition import AggregateUpdateType
from facescan.services.aggregate_model import AggregateModelGenerator


def make_face(embedding, tag=None) -> ScannedFace:
    return ScannedFace(
        coordinates=BoundingBox(x=0, y=0, width=100, height=100),
        embedding=embedding,
        confidence=0.99,
        tag=tag,
    )


@pytest.fixture
def generator():
    return AggregateModelGenerator()


class TestCreateAggregateModel:
    """Test suite for building aggregate models."""

    def test_from_faces(self, generator):
        model = generator.create_aggregate_model([make_face([2, 4]), make_face([4, 8])])
        assert model.sample_count == 2
        np.testing.assert_allclose(model.vector, [3, 6])

    def test_from_raw_embeddings(self, generator):
        model = generator.create_aggregate_model([np.array([1.0, 0.0]), np.array([0.0, 1.0])])
        assert model.sample_count == 2
        np.testing.assert_allclose(model.get_vectors(), [0.5, 0.5])

    def test_empty(self, generator):
        with pytest.raises(EmptyInputError):
            generator.create_aggregate_model([])

    def test_none(self, generator):
        with pytest.raises(NullInputError):
            generator.create_aggregate_model(None)

    def test_length_mismatch(self, generator):
        with pytest.raises(LengthMismatchError):
            generator.create_aggregate_model([make_face([1, 2]), make_face([1, 2, 3])])


class TestUpdateAggregateModel:
    """Test suite for in-place aggregate updates."""

    def test_add_updates_in_place(self, generator):
        model = generator.create_aggregate_model([[2, 4], [4, 8]])
        result = generator.update_aggregate_model(model, [6, 12], AggregateUpdateType.ADD)
        assert result is model
        assert model.sample_count == 3
        np.testing.assert_allclose(model.vector, [4, 8])

    def test_remove_updates_in_place(self, generator):
        model = generator.create_aggregate_model([[2, 4], [4, 8], [6, 12]])
        result = generator.update_aggregate_model(model, [6, 12], AggregateUpdateType.REMOVE)
        assert result is model
        assert model.sample_count == 2
        np.testing.assert_allclose(model.vector, [3, 6])

    def test_add_then_remove_restores(self, generator):
        rng = np.random.default_rng(7)
        vectors = rng.normal(size=(5, 8))
        model = generator.create_aggregate_model(vectors)
        original = model.vector.copy()
        extra = rng.normal(size=8)
        generator.update_aggregate_model(model, extra, AggregateUpdateType.ADD)
        generator.update_aggregate_model(model, extra, AggregateUpdateType.REMOVE)
        assert model.sample_count == 5
        np.testing.assert_allclose(model.vector, original, atol=1e-9)

    def test_incremental_matches_batch(self, generator):
        rng = np.random.default_rng(11)
        vectors = rng.normal(size=(10, 4))
        model = generator.create_aggregate_model(vectors[:1])
        for vector in vectors[1:]:
            generator.update_aggregate_model(model, vector, AggregateUpdateType.ADD)
        batch = generator.create_aggregate_model(vectors)
        assert model.sample_count == batch.sample_count
        np.testing.assert_allclose(model.vector, batch.vector, atol=1e-9)

    def test_add_face_model(self, generator):
        model = generator.create_aggregate_model([make_face([1.0, 1.0])])
        generator.update_aggregate_model(model, make_face([3.0, 3.0]), AggregateUpdateType.ADD)
        np.testing.assert_allclose(model.vector, [2.0, 2.0])

    def test_empty_model_first_add(self, generator):
        model = generator.create_empty_aggregate_model()
        assert model.sample_count == 0
        assert model.vector is None
        generator.update_aggregate_model(model, [0.25, 0.75], AggregateUpdateType.ADD)
        assert model.sample_count == 1
        np.testing.assert_allclose(model.vector, [0.25, 0.75])

    def test_remove_last_sample_is_undefined(self, generator):
        model = generator.create_aggregate_model([[1.0, 2.0]])
        with pytest.raises(UndefinedAverageError):
            generator.update_aggregate_model(model, [1.0, 2.0], AggregateUpdateType.REMOVE)
        assert model.sample_count == 1
        np.testing.assert_allclose(model.vector, [1.0, 2.0])

    def test_failed_update_leaves_model_untouched(self, generator):
        model = generator.create_aggregate_model([[1.0, 2.0], [3.0, 4.0]])
        with pytest.raises(LengthMismatchError):
            generator.update_aggregate_model(model, [1.0], AggregateUpdateType.ADD)
        assert model.sample_count == 2
        np.testing.assert_allclose(model.vector, [2.0, 3.0])

    def test_update_type_given_as_value(self, generator):
        model = generator.create_aggregate_model([[1.0, 1.0], [3.0, 3.0]])
        generator.update_aggregate_model(model, [5.0, 5.0], "add")
        assert model.sample_count == 3
        np.testing.assert_allclose(model.vector, [3.0, 3.0])
        generator.update_aggregate_model(model, [5.0, 5.0], "remove")
        assert model.sample_count == 2
        np.testing.assert_allclose(model.vector, [2.0, 2.0])

    def test_unknown_update_type_leaves_model_untouched(self, generator):
        model = generator.create_aggregate_model([[1.0, 1.0], [3.0, 3.0]])
        with pytest.raises(ValueError):
            generator.update_aggregate_model(model, [5.0, 5.0], "replace")
        assert model.sample_count == 2
        np.testing.assert_allclose(model.vector, [2.0, 2.0])

    def test_none_model(self, generator):
        with pytest.raises(NullInputError):
            generator.update_aggregate_model(None, [1.0], AggregateUpdateType.ADD)

    def test_vector_is_read_only(self, generator):
        model = generator.create_aggregate_model([[1.0, 2.0]])
        with pytest.raises(ValueError):
            model.vector[0] = 5.0


class TestAggregateFaceModel:
    """Test suite for the aggregate model entity."""

    def test_samples_require_vector(self):
        with pytest.raises(ValueError):
            AggregateFaceModel(sample_count=2, vector=None)

    def test_update_model_replaces_both_fields(self):
        model = AggregateFaceModel(sample_count=1, vector=[1.0, 1.0])
        model.update_model(np.array([2.0, 2.0]), 2)
        assert model.sample_count == 2
        np.testing.assert_allclose(model.vector, [2.0, 2.0])
