"""
Tests for the Flask JSON API.
"""

import base64
import io
import json
import typing

import numpy as np
import pytest
from flask import Response

from ears_skin.container import EraseRegion
from ears_skin.features import FeatureModel, WingData, WingMode
from ears_skin.io import decode_image
from ears_skin.layers import open_session
from ears_skin.ui.app import create_app
from ears_skin.wire import features_to_wire


@pytest.fixture
def client():
    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


def _post(client, url, skin: bytes, payload=None):
    data = {"skin": (io.BytesIO(skin), "skin.png")}
    if payload is not None:
        data["payload"] = json.dumps(payload)
    return client.post(url, data=data, content_type="multipart/form-data")


class TestReadEndpoints:
    """Tests for the read-only endpoints."""

    def test_health(self, client):
        """Test the health check."""
        assert client.get("/health").get_json() == {"status": "ok"}

    def test_routes_return_responses(self):
        """Test that every view is annotated to return a response."""
        app = create_app()
        for name in ("health", "read_container", "write_container", "render", "save"):
            hints = typing.get_type_hints(app.view_functions[name])
            assert hints["return"] is Response

    def test_container(self, client, blank_skin_png):
        """Test that a plain skin has an empty container."""
        response = _post(client, "/api/container", blank_skin_png)
        assert response.status_code == 200
        assert response.get_json() == {"version": 0, "entries": {}}

    def test_features(self, client, blank_skin_png):
        """Test that a plain skin has no features."""
        response = _post(client, "/api/features", blank_skin_png)
        assert response.get_json() == {"features": None, "palette": []}

    def test_render(self, client, blank_skin_png, blank_skin):
        """Test that layers come back as base64 PNG."""
        response = _post(client, "/api/render", blank_skin_png)
        layers = response.get_json()["layers"]
        assert list(layers) == ["base"]
        assert np.array_equal(decode_image(base64.b64decode(layers["base"])), blank_skin)

    def test_missing_upload(self, client):
        """Test that requests without a skin are rejected."""
        response = client.post("/api/container", data={}, content_type="multipart/form-data")
        assert response.status_code == 400
        assert "skin" in response.get_json()["error"]

    def test_corrupt_upload(self, client):
        """Test that unreadable skins give a user-facing error."""
        response = _post(client, "/api/features", b"nope")
        assert response.status_code == 400
        assert response.get_json()["error"] == "Unreadable or corrupt skin data"


class TestWriteEndpoints:
    """Tests for the endpoints returning an edited skin."""

    def test_erase_round_trip(self, client, blank_skin_png):
        """Test that written regions are read back."""
        regions = [{"x": 0, "y": 0, "width": 8, "height": 8}]
        response = _post(client, "/api/erase/write", blank_skin_png, {"regions": regions})
        assert response.status_code == 200
        assert response.mimetype == "image/png"
        read = _post(client, "/api/erase", response.data)
        assert read.get_json() == {"regions": regions}

    def test_container_write(self, client, blank_skin_png):
        """Test that custom entries and version are written."""
        payload = {"version": 4, "entries": {"mymod:extra": {"type": "binary", "value": "AQID"}}}
        response = _post(client, "/api/container/write", blank_skin_png, payload)
        assert response.status_code == 200
        container = open_session(response.data).container
        assert container.version == 4
        assert container.get("mymod:extra") == bytes([1, 2, 3])

    def test_container_write_rejects_textures(self, client, blank_skin_png):
        """Test that wing and cape go through the feature editor."""
        payload = {"entries": {"wing": {"type": "image", "value": "AQID"}}}
        response = _post(client, "/api/container/write", blank_skin_png, payload)
        assert response.status_code == 400
        assert "feature editor" in response.get_json()["error"]

    def test_save(self, client, blank_skin_png, wing_png):
        """Test that an edit delta produces the edited skin."""
        model = FeatureModel(wing=WingData(mode=WingMode.ASYMMETRIC_RIGHT))
        payload = {
            "features": features_to_wire(model),
            "wingImage": base64.b64encode(wing_png).decode("ascii"),
            "eraseRegions": [{"x": 1, "y": 1, "width": 1, "height": 1}],
        }
        response = _post(client, "/api/save", blank_skin_png, payload)
        assert response.status_code == 200
        session = open_session(response.data)
        assert session.features == model
        assert session.container.get("wing") == wing_png
        assert session.container.get_erase_regions() == [EraseRegion(1, 1, 1, 1)]

    def test_save_bad_payload(self, client, blank_skin_png):
        """Test that malformed JSON is rejected."""
        data = {"skin": (io.BytesIO(blank_skin_png), "skin.png"), "payload": "{"}
        response = client.post("/api/save", data=data, content_type="multipart/form-data")
        assert response.status_code == 400
        assert "detail" in response.get_json()
