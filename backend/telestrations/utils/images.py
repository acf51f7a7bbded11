from __future__ import annotations

import base64
import binascii

DATA_URL_PREFIX = "data:image/png;base64,"


def to_data_url(image: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(image).decode("ascii")


def parse_data_url(data_url: str) -> bytes | None:
    """Decode the base64 payload of a ``data:image/...;base64,`` URL.

    Returns None for anything that is not a decodable, non-empty image.
    """
    if not isinstance(data_url, str):
        return None
    header, sep, payload = data_url.strip().partition(",")
    if not sep or not header.startswith("data:image/") or not header.endswith(";base64"):
        return None
    try:
        image = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    return image or None
