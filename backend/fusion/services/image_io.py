from __future__ import annotations

import io
import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from fusion.domain.errors import DecodeError, EncodeError

ImageSource = Union[str, os.PathLike, bytes, bytearray, BinaryIO]

# single-channel integer modes Pillow uses for 16-bit data (PNG, TIFF)
WIDE_INT_MODES = {"I;16", "I;16L", "I;16B", "I;16N", "I"}


def read_source_bytes(source: ImageSource) -> bytes:
    """Return the encoded bytes of a path, a bytes blob or a binary file-like object."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if hasattr(source, "read"):
        try:
            data = source.read()
        except OSError as exc:
            raise DecodeError(f"could not read image stream: {exc}") from exc
        if not isinstance(data, (bytes, bytearray)):
            raise DecodeError("image stream must be opened in binary mode")
        return bytes(data)
    try:
        return Path(source).read_bytes()
    except (OSError, TypeError) as exc:
        raise DecodeError(f"could not read image {source!r}: {exc}") from exc


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded bytes into a fully loaded PIL image."""
    if not data:
        raise DecodeError("image data is empty")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"unsupported or corrupt image: {exc}") from exc
    except (OSError, SyntaxError, ValueError) as exc:
        # truncated files surface as OSError, some broken headers as SyntaxError
        raise DecodeError(f"could not decode image: {exc}") from exc
    return to_8bit(img)


def to_8bit(img: Image.Image) -> Image.Image:
    """Rescale 16-bit grayscale to 8-bit "L"; 8-bit modes pass through.

    convert("RGB"/"RGBA") on these modes clips instead of scaling, so every
    value above 255 would turn white.
    """
    if img.mode in WIDE_INT_MODES:
        arr = np.asarray(img, dtype=np.float64)
        arr = np.clip(np.rint(arr / 257.0), 0, 255).astype(np.uint8)
        return Image.fromarray(arr, mode="L")
    if img.mode == "F":
        # float data has no fixed range
        raise DecodeError("floating-point images are not supported")
    return img


def load_image(source: ImageSource) -> Image.Image:
    return decode_image(read_source_bytes(source))


def image_size(source: ImageSource) -> tuple[int, int]:
    return load_image(source).size


def _umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def new_output_name(prefix: str = "fusion-composite") -> str:
    # ms timestamp + random suffix keeps names unique under parallel calls
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.png"


def save_png_atomic(img: Image.Image, path: Union[str, os.PathLike]) -> Path:
    """Encode img as PNG next to path, then rename over it. Nothing is left behind on failure."""
    target = Path(path)
    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=".png", dir=target.parent)
        with os.fdopen(fd, "wb") as fh:
            img.save(fh, format="PNG")
        # mkstemp creates 0600; outputs are served by other processes
        os.chmod(tmp_name, 0o666 & ~_umask())
        os.replace(tmp_name, target)
    except (OSError, ValueError) as exc:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
        raise EncodeError(f"could not write {target}: {exc}") from exc
    return target
