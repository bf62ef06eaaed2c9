"""
API Integration Tests for Selection Router Endpoints
"""

import base64

import cv2
import numpy as np


def encode_png(image):
    success, buffer = cv2.imencode(".png", image)
    assert success
    return base64.b64encode(buffer).decode("utf-8")


class TestSelectionCropAPI:
    """Integration tests for POST /api/selection/crop"""

    def test_crop_with_png_mask(self, client, scene_payload):
        """Test cropping with an encoded mask"""
        response = client.post(
            "/api/selection/crop",
            json={
                "image": scene_payload["image"],
                "mask": {"image": encode_png(scene_payload["mask"])},
            },
        )

        assert response.status_code == 200
        data = response.json()

        assert data["bounding_box"] == {"x": 40, "y": 30, "width": 40, "height": 40}
        region = data["region"]
        assert (region["x"], region["y"], region["width"], region["height"]) == (32, 22, 56, 56)
        assert region["original_box"] == data["bounding_box"]
        assert data["original_dimensions"] == {"width": 120, "height": 100}
        assert data["data_url"].startswith("data:image/png;base64,")

        crop = cv2.imdecode(np.frombuffer(base64.b64decode(data["image"]), np.uint8), cv2.IMREAD_COLOR)
        assert crop.shape == (56, 56, 3)

    def test_crop_with_raw_mask(self, client, scene_payload):
        """Test cropping with raw mask bytes and explicit padding"""
        mask = scene_payload["mask"]
        response = client.post(
            "/api/selection/crop",
            json={
                "image": scene_payload["image"],
                "mask": {
                    "raw": {
                        "width": 120,
                        "height": 100,
                        "data": base64.b64encode(mask.tobytes()).decode(),
                    }
                },
                "padding_percent": 0,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["region"]["width"] == 40
        assert data["region"]["padding_percent"] == 0

    def test_crop_without_filtering(self, client, scene_payload):
        """Test filter_largest=false keeps the speck in the box"""
        response = client.post(
            "/api/selection/crop",
            json={
                "image": scene_payload["image"],
                "mask": {"image": encode_png(scene_payload["mask"])},
                "padding_percent": 0,
                "filter_largest": False,
            },
        )

        assert response.status_code == 200
        assert response.json()["bounding_box"] == {"x": 2, "y": 2, "width": 78, "height": 68}

    def test_empty_mask(self, client, scene_payload):
        """Test an empty mask returns NoSelection"""
        response = client.post(
            "/api/selection/crop",
            json={
                "image": scene_payload["image"],
                "mask": {"image": encode_png(np.zeros((100, 120), dtype=np.uint8))},
            },
        )

        assert response.status_code == 422
        data = response.json()
        assert data["kind"] == "NoSelection"
        assert data["recoverable"] is False
        assert "message" in data

    def test_invalid_image(self, client, scene_payload):
        """Test an undecodable image returns ImageLoadFailed"""
        response = client.post(
            "/api/selection/crop",
            json={
                "image": base64.b64encode(b"not an image").decode(),
                "mask": {"image": encode_png(scene_payload["mask"])},
            },
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "ImageLoadFailed"

    def test_padding_out_of_range(self, client, scene_payload):
        """Test padding above 50 is rejected by validation"""
        response = client.post(
            "/api/selection/crop",
            json={
                "image": scene_payload["image"],
                "mask": {"image": encode_png(scene_payload["mask"])},
                "padding_percent": 75,
            },
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "InvalidParameter"

    def test_mask_requires_one_source(self, client, scene_payload):
        """Test a mask payload without image or raw data is rejected"""
        response = client.post(
            "/api/selection/crop",
            json={"image": scene_payload["image"], "mask": {}},
        )

        assert response.status_code == 422


class TestBoundingBoxAPI:
    """Integration tests for POST /api/selection/bounding-box"""

    def test_bounding_box(self, client, scene_payload):
        """Test bounding box of the largest component"""
        response = client.post(
            "/api/selection/bounding-box",
            json={"mask": {"image": encode_png(scene_payload["mask"])}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["bounding_box"] == {"x": 40, "y": 30, "width": 40, "height": 40}
        assert data["mask_dimensions"] == {"width": 120, "height": 100}
        assert data["selected_pixels"] == 40 * 40 + 4

    def test_bounding_box_raw_length_mismatch(self, client):
        """Test raw data of the wrong length returns ImageLoadFailed"""
        response = client.post(
            "/api/selection/bounding-box",
            json={
                "mask": {
                    "raw": {"width": 4, "height": 4, "data": base64.b64encode(bytes(3)).decode()}
                }
            },
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "ImageLoadFailed"

    def test_raw_mask_too_large(self, client):
        """Test raw masks above the maximum dimension return ImageLoadFailed"""
        response = client.post(
            "/api/selection/bounding-box",
            json={"mask": {"raw": {"width": 9000, "height": 1, "data": ""}}},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "ImageLoadFailed"
        assert "max dimension" in data["message"]

    def test_mask_over_upload_limit(self, client):
        """Test mask payloads are held to the upload size limit"""
        from config import Settings

        client.app.state.settings = Settings(environment="test", api={"max_upload_size_mb": 1})
        oversized = "A" * (2 * 1024 * 1024)

        response = client.post(
            "/api/selection/bounding-box",
            json={"mask": {"raw": {"width": 2048, "height": 1024, "data": oversized}}},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "ImageLoadFailed"
        assert "upload limit" in data["message"]
