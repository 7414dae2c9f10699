"""Tests for the InsightFace scan generator.

The InsightFace model bundle is replaced by a fake so the tests exercise the
conversion, filtering and error handling without downloading models.
"""
from types import SimpleNamespace

import numpy as np
import pytest

pytest.importorskip("insightface")
cv2 = pytest.importorskip("cv2")

from facescan.core.exceptions import InvalidImageError, ModelLoadError
from facescan.domain.entities.face import Gender, ScannedFace, ScannedFaceWithClassifiers
from facescan.services.recognition import insight_face
from facescan.services.recognition.insight_face import InsightFaceScanGenerator


def make_detection(x1, y1, x2, y2, score, embedding, gender=1, age=33.6):
    embedding = np.asarray(embedding, dtype=np.float32)
    return SimpleNamespace(
        bbox=np.array([x1, y1, x2, y2], dtype=np.float32),
        kps=np.array([[x1 + 5, y1 + 5], [x2 - 5, y1 + 5], [x1 + 10, y2 - 10],
                      [x1 + 5, y2 - 5], [x2 - 5, y2 - 5]], dtype=np.float32),
        det_score=np.float32(score),
        embedding=embedding * 10,
        normed_embedding=embedding,
        gender=gender,
        age=age,
    )


class FakeFaceAnalysis:
    """Stands in for insightface.app.FaceAnalysis."""

    detections = []
    fail_prepare = False

    def __init__(self, name=None, root=None, providers=None):
        self.name = name
        self.providers = providers
        self.calls = []

    def prepare(self, ctx_id=0, det_size=(640, 640)):
        if self.fail_prepare:
            raise RuntimeError("model files missing")
        self.ctx_id = ctx_id
        self.det_size = det_size

    def get(self, img, max_num=0):
        self.calls.append((img.shape, max_num))
        return list(self.detections)


@pytest.fixture
def fake_model(monkeypatch):
    FakeFaceAnalysis.detections = [
        make_detection(10, 20, 110, 140, 0.98, [0.6, 0.8, 0.0], gender=1, age=33.6),
        make_detection(200, 40, 260, 120, 0.91, [0.0, 0.6, 0.8], gender=0, age=21.2),
        make_detection(300, 300, 310, 310, 0.2, [1.0, 0.0, 0.0]),
    ]
    FakeFaceAnalysis.fail_prepare = False
    monkeypatch.setattr(insight_face, "FaceAnalysis", FakeFaceAnalysis)
    return FakeFaceAnalysis


@pytest.fixture
def image_bytes():
    ok, buffer = cv2.imencode(".png", np.zeros((480, 640, 3), dtype=np.uint8))
    assert ok
    return buffer.tobytes()


class TestInsightFaceScanGenerator:
    """Test suite for the InsightFace scan generator."""

    async def test_perform_face_scan(self, fake_model, image_bytes):
        """Should convert detections and drop low-confidence faces."""
        async with InsightFaceScanGenerator(use_cuda=False) as scanner:
            faces = await scanner.perform_face_scan(image_bytes)

        assert len(faces) == 2
        face = faces[0]
        assert isinstance(face, ScannedFace)
        assert face.coordinates.x == pytest.approx(10)
        assert face.coordinates.y == pytest.approx(20)
        assert face.coordinates.width == pytest.approx(100)
        assert face.coordinates.height == pytest.approx(120)
        assert len(face.landmarks) == 5
        assert face.confidence == pytest.approx(0.98, abs=1e-6)
        np.testing.assert_allclose(face.get_vectors(), [0.6, 0.8, 0.0], atol=1e-6)

    async def test_max_faces(self, fake_model, image_bytes):
        scanner = InsightFaceScanGenerator(use_cuda=False)
        faces = await scanner.perform_face_scan(image_bytes, max_faces=1)
        assert len(faces) == 1
        assert scanner.model.calls[0][1] == 1

    async def test_perform_face_scan_with_classifiers(self, fake_model, image_bytes):
        scanner = InsightFaceScanGenerator(use_cuda=False)
        faces = await scanner.perform_face_scan_with_classifiers(image_bytes)

        assert all(isinstance(face, ScannedFaceWithClassifiers) for face in faces)
        assert [face.gender for face in faces] == [Gender.MALE, Gender.FEMALE]
        assert [face.age for face in faces] == [34, 21]

    async def test_invalid_image(self, fake_model):
        scanner = InsightFaceScanGenerator(use_cuda=False)
        with pytest.raises(InvalidImageError):
            await scanner.perform_face_scan(b"not an image")
        with pytest.raises(InvalidImageError):
            await scanner.perform_face_scan(b"")

    async def test_released_model(self, fake_model, image_bytes):
        async with InsightFaceScanGenerator(use_cuda=False) as scanner:
            pass
        with pytest.raises(ModelLoadError):
            await scanner.perform_face_scan(image_bytes)

    def test_model_load_failure(self, fake_model):
        fake_model.fail_prepare = True
        with pytest.raises(ModelLoadError):
            InsightFaceScanGenerator(use_cuda=False)

    def test_cuda_provider(self, fake_model):
        scanner = InsightFaceScanGenerator(use_cuda=True)
        assert scanner.model.providers[0] == "CUDAExecutionProvider"
        assert scanner.model.ctx_id == 0

    async def test_no_faces_returns_empty_list(self, fake_model, image_bytes):
        fake_model.detections = []
        scanner = InsightFaceScanGenerator(use_cuda=False)
        assert await scanner.perform_face_scan(image_bytes) == []
        assert await scanner.perform_face_scan_with_classifiers(image_bytes) == []

    async def test_large_image_is_downscaled(self, fake_model, image_bytes, monkeypatch):
        """Images above MAX_IMAGE_PIXELS reach the detector shrunk, keeping aspect ratio."""
        monkeypatch.setattr(insight_face.settings, "MAX_IMAGE_PIXELS", 160 * 120)
        scanner = InsightFaceScanGenerator(use_cuda=False)
        await scanner.perform_face_scan(image_bytes)

        shape, _ = scanner.model.calls[0]
        assert shape == (120, 160, 3)

    async def test_image_within_limit_is_not_resized(self, fake_model, image_bytes, monkeypatch):
        monkeypatch.setattr(insight_face.settings, "MAX_IMAGE_PIXELS", 640 * 480)
        scanner = InsightFaceScanGenerator(use_cuda=False)
        await scanner.perform_face_scan(image_bytes)

        shape, _ = scanner.model.calls[0]
        assert shape == (480, 640, 3)
