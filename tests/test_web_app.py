"""Flask Web API 测试"""

import io
from unittest.mock import patch

import cv2
import numpy as np
import pytest

import web_app
from landmark_factory import make_landmarks
from models.data_models import FaceLandmarks


@pytest.fixture
def client():
    web_app.app.config["TESTING"] = True
    with web_app.app.test_client() as c:
        yield c


def _png_bytes():
    ok, buffer = cv2.imencode(".png", np.zeros((48, 64, 3), dtype=np.uint8))
    assert ok
    return buffer.tobytes()


def _upload(client, payload=None, **form):
    data = dict(form)
    data["image"] = (io.BytesIO(payload if payload is not None else _png_bytes()), "face.png")
    return client.post("/api/analyze", data=data, content_type="multipart/form-data")


def _detected():
    return FaceLandmarks(all_landmarks=make_landmarks(), image_size=(48, 64))


class TestAnalyze:
    def test_success(self, client):
        with patch.object(web_app.system.face_detector, "detect", return_value=_detected()):
            resp = _upload(client)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["face_shape"] == "Round"
        assert body["recommended_frames"]

    def test_with_frame_id(self, client):
        with patch.object(web_app.system.face_detector, "detect", return_value=_detected()):
            resp = _upload(client, frame_id="5")
        assert resp.status_code == 200
        assert "fit" in resp.get_json()

    def test_unknown_frame_id(self, client):
        with patch.object(web_app.system.face_detector, "detect", return_value=_detected()):
            resp = _upload(client, frame_id="99")
        assert resp.status_code == 404

    def test_no_face(self, client):
        with patch.object(web_app.system.face_detector, "detect", return_value=None):
            resp = _upload(client)
        assert resp.status_code == 422

    def test_degenerate_geometry(self, client):
        bad = FaceLandmarks(all_landmarks=make_landmarks(jaw_half=0.0), image_size=(48, 64))
        with patch.object(web_app.system.face_detector, "detect", return_value=bad):
            resp = _upload(client)
        assert resp.status_code == 422

    def test_missing_file(self, client):
        resp = client.post("/api/analyze", data={}, content_type="multipart/form-data")
        assert resp.status_code == 400

    def test_undecodable_image(self, client):
        resp = _upload(client, payload=b"not an image")
        assert resp.status_code == 400


class TestFit:
    def test_catalog_frame(self, client):
        resp = client.post("/api/fit", json={"face": {"face_shape": "Triangle"}, "frame_id": 5})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["style_fit"]["score"] == 95
        assert body["style_fit"]["status"] == "excellent match"

    def test_explicit_frame(self, client):
        frame = {"lens_width": 52, "bridge_width": 18, "temple_length": 140,
                 "lens_height": 54, "total_width": 120}
        resp = client.post("/api/fit", json={"face": {"temple_to_temple_distance": 145}, "frame": frame,
                                             "frame_shape": "Round"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["width_fit"]["status"] == "too narrow"
        assert "Look for frames with a wider total width." in body["recommendations"]

    def test_unknown_frame(self, client):
        resp = client.post("/api/fit", json={"frame_id": 42})
        assert resp.status_code == 404

    def test_missing_frame(self, client):
        resp = client.post("/api/fit", json={"face": {}})
        assert resp.status_code == 400

    def test_bad_frame_fields(self, client):
        resp = client.post("/api/fit", json={"frame": {"lens_width": 52}})
        assert resp.status_code == 400

    def test_degenerate_face(self, client):
        resp = client.post("/api/fit", json={"face": {"face_height": 0}, "frame_id": 1})
        assert resp.status_code == 422

    def test_not_json(self, client):
        resp = client.post("/api/fit", data="plain text")
        assert resp.status_code == 400

    def test_face_not_object(self, client):
        resp = client.post("/api/fit", json={"face": [1, 2], "frame_id": 1})
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

        resp = client.post("/api/fit", json={"face": "wide", "frame_id": 1})
        assert resp.status_code == 400

    def test_frame_not_object(self, client):
        resp = client.post("/api/fit", json={"frame": [52, 18, 140]})
        assert resp.status_code == 400

    def test_numeric_frame_shape(self, client):
        frame = {"lens_width": 52, "bridge_width": 18, "temple_length": 140,
                 "lens_height": 54, "total_width": 120}
        resp = client.post("/api/fit", json={"frame": frame, "frame_shape": 5})
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False


class TestFrames:
    def test_list(self, client):
        body = client.get("/api/frames").get_json()
        assert body["total"] == 9

    def test_filters(self, client):
        body = client.get("/api/frames", query_string={"category": "Vintage"}).get_json()
        assert [f["name"] for f in body["frames"]] == ["Round Vintage"]

    def test_bad_price_range(self, client):
        resp = client.get("/api/frames", query_string={"price_range": "Free"})
        assert resp.status_code == 400

    def test_get_one(self, client):
        body = client.get("/api/frames/1").get_json()
        assert body["name"] == "Classic Wayfarer"
        assert body["measurements"]["size_notation"] == "52-18-145"

    def test_get_unknown(self, client):
        assert client.get("/api/frames/99").status_code == 404


class TestStyleGuide:
    def test_known_shape(self, client):
        body = client.get("/api/style-guide/Heart").get_json()
        assert body["shape"] == "Heart"

    def test_unknown_shape_falls_back(self, client):
        body = client.get("/api/style-guide/Pear").get_json()
        assert body["shape"] == "Oval"
