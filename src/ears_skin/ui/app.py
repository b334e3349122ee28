"""Flask JSON API for inspecting, rendering and editing skins."""

from __future__ import annotations

import io
import logging
from typing import Optional, Tuple

from flask import Flask, Response, jsonify, request, send_file
from werkzeug.exceptions import BadRequest

from ears_skin.config import Config
from ears_skin.container import ContainerKey
from ears_skin.errors import InvalidArgumentError, SkinDataError
from ears_skin.layers import SkinEdit, SkinSession, decompose_for_render, open_session, recompose_for_save
from ears_skin.wire import (
    container_from_wire,
    container_to_wire,
    edit_from_wire,
    features_to_wire,
    layers_to_wire,
    parse_payload,
    regions_from_wire,
)

logger = logging.getLogger(__name__)

_TEXTURE_KEYS = (ContainerKey.WING.value, ContainerKey.CAPE.value)


def _skin_bytes() -> bytes:
    upload = request.files.get("skin")
    if upload is None:
        raise BadRequest("Upload a skin image in the 'skin' field.")
    return upload.read()


def _session(config: Config) -> SkinSession:
    return open_session(_skin_bytes(), config)


def _image_response(data: bytes, config: Config) -> Response:
    image_format = config.image_format.lower()
    return send_file(io.BytesIO(data), mimetype=f"image/{image_format}", download_name=f"skin.{image_format}")


def _palette_json(session: SkinSession) -> list:
    return [list(color) for color in session.palette] if session.palette else []


def create_app(config: Optional[Config] = None) -> Flask:
    app = Flask(__name__)
    config = config or Config()

    @app.errorhandler(SkinDataError)
    def skin_data_error(exc: SkinDataError) -> Tuple[Response, int]:
        logger.info("Rejected request: %s", exc)
        return jsonify({"error": exc.user_message, "detail": str(exc)}), 400

    @app.errorhandler(BadRequest)
    def bad_request(exc: BadRequest) -> Tuple[Response, int]:
        return jsonify({"error": exc.description}), 400

    @app.route("/health")
    def health() -> Response:
        return jsonify({"status": "ok"})

    @app.route("/api/container", methods=["POST"])
    def read_container() -> Response:
        session = _session(config)
        return jsonify(container_to_wire(session.container))

    @app.route("/api/container/write", methods=["POST"])
    def write_container() -> Response:
        session = _session(config)
        payload = parse_payload(request.form.get("payload"))
        container = container_from_wire(payload)
        managed = [key for key in _TEXTURE_KEYS if key in container]
        if managed:
            raise InvalidArgumentError(
                f"Keys {managed} are managed through the feature editor.",
                user_message="Wing and cape textures are set through the feature editor",
            )
        session.container.version = container.version
        edit = SkinEdit(
            custom_entries=container.custom_entries(),
            erase_regions=container.get_erase_regions() or [],
        )
        return _image_response(recompose_for_save(session, edit, config), config)

    @app.route("/api/erase", methods=["POST"])
    def read_erase() -> Response:
        session = _session(config)
        regions = session.container.get_erase_regions() or []
        return jsonify({"regions": [region.to_dict() for region in regions]})

    @app.route("/api/erase/write", methods=["POST"])
    def write_erase() -> Response:
        session = _session(config)
        payload = parse_payload(request.form.get("payload"))
        regions = regions_from_wire(payload.get("regions", []))
        return _image_response(recompose_for_save(session, SkinEdit(erase_regions=regions), config), config)

    @app.route("/api/features", methods=["POST"])
    def read_features() -> Response:
        session = _session(config)
        return jsonify(
            {
                "features": features_to_wire(session.features, session.palette),
                "palette": _palette_json(session),
            }
        )

    @app.route("/api/render", methods=["POST"])
    def render() -> Response:
        session = _session(config)
        layers = decompose_for_render(session, config)
        return jsonify({"layers": layers_to_wire(layers, config.image_format)})

    @app.route("/api/save", methods=["POST"])
    def save() -> Response:
        session = _session(config)
        payload = parse_payload(request.form.get("payload"))
        edit = edit_from_wire(payload, default_data_version=config.default_data_version)
        return _image_response(recompose_for_save(session, edit, config), config)

    return app
