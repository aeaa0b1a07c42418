"""Low dynamic range PNG previews of the cubemap, with embedded metadata."""

import io
from typing import Dict, Optional

import numpy as np
from PIL import Image, PngImagePlugin

from ..color.tonemapping import apply_exposure, to_rgba8
from ..errors import EncodeError
from ..fileio import atomic_write_bytes
from ..models.cubemap import FACE_COUNT, Cubemap

# (column, row) of each face in the 4 x 3 cross unfolding, by face index
NET_LAYOUT = ((2, 1), (0, 1), (1, 0), (1, 2), (1, 1), (3, 1))


def face_strip_image(cubemap: Cubemap, exposure_value: float) -> np.ndarray:
    """Tone-map the cubemap into a vertical strip of the six faces.

    Args:
        cubemap: Normalized cubemap
        exposure_value: Exposure in stops

    Returns:
        np.ndarray: RGBA8 array with shape (6 * res, res, 4)
    """
    return to_rgba8(apply_exposure(cubemap.as_strip(), exposure_value))


def net_image(strip: np.ndarray) -> np.ndarray:
    """Rearrange a face strip into a 4 x 3 cross (net) layout.

    Faces are copied verbatim; cells not covered by a face stay transparent.

    Args:
        strip: RGBA8 face strip with shape (6 * res, res, 4)

    Returns:
        np.ndarray: RGBA8 array with shape (3 * res, 4 * res, 4)
    """
    res = strip.shape[1]
    if strip.shape[0] != FACE_COUNT * res:
        raise ValueError("Face strip must be six square faces stacked vertically")

    net = np.zeros((3 * res, 4 * res, strip.shape[2]), dtype=strip.dtype)
    for face, (column, row) in enumerate(NET_LAYOUT):
        net[row * res : (row + 1) * res, column * res : (column + 1) * res] = strip[
            face * res : (face + 1) * res
        ]

    return net


def encode_png(image_array: np.ndarray, metadata: Dict[str, str]) -> bytes:
    """Encode an RGBA8 array as PNG bytes with text metadata chunks."""
    if image_array.dtype != np.uint8:
        raise ValueError("Image array must be uint8 for 8-bit PNG output")

    if len(image_array.shape) != 3 or image_array.shape[2] != 4:
        raise ValueError("Image array must have shape (height, width, 4)")

    png_info = PngImagePlugin.PngInfo()
    for key, value in metadata.items():
        png_info.add_text(key, str(value))

    image = Image.fromarray(np.ascontiguousarray(image_array))
    buffer = io.BytesIO()
    image.save(buffer, "PNG", pnginfo=png_info, compress_level=9)
    return buffer.getvalue()


def save_png(image_array: np.ndarray, metadata: Dict[str, str], output_path) -> None:
    """Encode and atomically write a PNG.

    Raises:
        EncodeError: If encoding or writing fails
    """
    try:
        atomic_write_bytes(output_path, encode_png(image_array, metadata))
    except (OSError, ValueError) as e:
        raise EncodeError(str(output_path), str(e)) from e


def extract_metadata(image_path: str) -> Optional[Dict[str, str]]:
    """Extract metadata from a PNG file.

    Args:
        image_path: Path to PNG file

    Returns:
        Dictionary of metadata key-value pairs, or None if no metadata found
    """
    try:
        image = Image.open(image_path)
    except FileNotFoundError:
        return None

    metadata = {}
    if hasattr(image, "text"):
        for key, value in image.text.items():
            metadata[key] = value

    return metadata if metadata else None
