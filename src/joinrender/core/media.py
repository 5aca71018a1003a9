"""
Media Helpers - Convert local images to and from data URLs.

Image-input nodes carry their image as a ``data:`` URL in literal data.
These helpers build such URLs from files, PIL images and pixel arrays,
and decode them back to images.

Pixel arrays follow the HWC layout. uint8 arrays are taken as [0, 255];
float arrays as [0, 1].
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
from io import BytesIO
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from PIL import Image

DATA_URL_PREFIX = "data:"

_FORMAT_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}

_FORMAT_ALIASES = {"JPG": "JPEG", "TIF": "TIFF"}


def array_to_pil(array: NDArray) -> Image.Image:
    """
    Convert a pixel array to a PIL image.

    Handles grayscale (HW), RGB and RGBA (HWC) arrays in uint8 or float.
    """
    arr = np.asarray(array)
    if arr.dtype != np.uint8:
        arr = (arr.astype(np.float32) * 255).clip(0, 255).astype(np.uint8)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    if arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (3, 4)):
        raise ValueError(f"Unsupported pixel array shape: {arr.shape}")
    return Image.fromarray(arr)


def image_to_data_url(image: Image.Image | NDArray, format: str = "PNG") -> str:
    """Encode an image or pixel array as a base64 data URL."""
    if not isinstance(image, Image.Image):
        image = array_to_pil(image)

    format = _FORMAT_ALIASES.get(format.upper(), format.upper())
    if format == "JPEG" and image.mode == "RGBA":
        image = image.convert("RGB")

    buf = BytesIO()
    image.save(buf, format=format)
    mime = _FORMAT_MIME.get(format, f"image/{format.lower()}")
    return f"{DATA_URL_PREFIX}{mime};base64,{base64.b64encode(buf.getvalue()).decode('ascii')}"


def file_to_data_url(path: str | Path) -> str:
    """
    Encode an image file as a data URL.

    The file is opened with Pillow so unreadable files fail early; the
    original bytes are embedded unchanged.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    with Image.open(path) as image:
        image_format = image.format

    mime = _FORMAT_MIME.get(image_format or "") or mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"{DATA_URL_PREFIX}{mime};base64,{encoded}"


def data_url_to_image(url: str) -> Image.Image:
    """
    Decode a base64 image data URL.

    Raises:
        ValueError: The URL is not a base64 data URL or holds no image
    """
    if not url.startswith(DATA_URL_PREFIX) or ";base64," not in url:
        raise ValueError("Not a base64 data URL")

    payload = url.split(";base64,", 1)[1]
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e

    try:
        image = Image.open(BytesIO(raw))
        image.load()
    except OSError as e:
        raise ValueError(f"Data URL does not hold an image: {e}") from e
    return image


def is_data_url(value: object) -> bool:
    return isinstance(value, str) and value.startswith(DATA_URL_PREFIX)


def is_image_value(value: object) -> bool:
    """True for in-memory images: PIL images and pixel arrays."""
    return isinstance(value, (Image.Image, np.ndarray))
