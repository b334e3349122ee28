"""Image I/O utilities."""

from ears_skin.io.images import (
    decode_image,
    encode_image,
    load_skin_bytes,
    save_image,
    save_layers,
)

__all__ = ["decode_image", "encode_image", "load_skin_bytes", "save_image", "save_layers"]
