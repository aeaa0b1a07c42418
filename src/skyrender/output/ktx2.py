"""KTX2 container for the HDR cubemap.

The cubemap is stored as a single mip level with six faces in
VK_FORMAT_E5B9G9R9_UFLOAT_PACK32 and Zstandard supercompression. Faces are
written in cubemap buffer order.
"""

import struct

import numpy as np
import zstandard

from .. import __version__
from ..color.encoding import (
    RGB9E5_EXPONENT_BIAS,
    RGB9E5_MANTISSA_BITS,
    RGB9E5_MAX_EXPONENT,
    float3_to_rgb9e5,
)
from ..errors import EncodeError
from ..fileio import atomic_write_bytes
from ..models.cubemap import FACE_COUNT, Cubemap

KTX2_IDENTIFIER = b"\xabKTX 20\xbb\r\n\x1a\n"
VK_FORMAT_E5B9G9R9_UFLOAT_PACK32 = 123
SUPERCOMPRESSION_ZSTD = 2

# Data format descriptor constants (Khronos Data Format Specification)
_KHR_DF_MODEL_RGBSDA = 1
_KHR_DF_PRIMARIES_BT709 = 1
_KHR_DF_TRANSFER_LINEAR = 1
_KHR_DF_VERSION = 2
_KHR_DF_SAMPLE_DATATYPE_EXPONENT = 0x20
_CHANNELS = (0, 1, 2)  # R, G, B

_HEADER_FORMAT = "<9I4I2Q"
_LEVEL_INDEX_FORMAT = "<3Q"


def _sample(bit_offset: int, bit_length: int, channel: int, lower: int, upper: int):
    return struct.pack(
        "<HBB4BII",
        bit_offset,
        bit_length - 1,
        channel,
        0,
        0,
        0,
        0,
        lower,
        upper,
    )


def build_data_format_descriptor() -> bytes:
    """Basic data format descriptor for shared-exponent E5B9G9R9 texels.

    Each channel is described by a mantissa sample and a sample for the
    shared exponent bits. bytesPlane0 is 0 because the level data is
    supercompressed.
    """
    samples = b""
    exponent_offset = 3 * RGB9E5_MANTISSA_BITS
    for channel in _CHANNELS:
        samples += _sample(
            channel * RGB9E5_MANTISSA_BITS,
            RGB9E5_MANTISSA_BITS,
            channel,
            0,
            1 << (RGB9E5_MANTISSA_BITS - 1),
        )
        samples += _sample(
            exponent_offset,
            32 - exponent_offset,
            channel | _KHR_DF_SAMPLE_DATATYPE_EXPONENT,
            RGB9E5_EXPONENT_BIAS,
            RGB9E5_MAX_EXPONENT,
        )

    block_size = 24 + len(samples)
    block = (
        struct.pack(
            "<IHH4B4B8B",
            0,  # vendorId 0 (Khronos), descriptorType 0 (basic)
            _KHR_DF_VERSION,
            block_size,
            _KHR_DF_MODEL_RGBSDA,
            _KHR_DF_PRIMARIES_BT709,
            _KHR_DF_TRANSFER_LINEAR,
            0,  # flags: straight alpha
            0,
            0,
            0,
            0,  # texel block is 1x1x1x1
            0,
            0,
            0,
            0,
            0,
            0,
            0,
            0,  # bytesPlane0..7
        )
        + samples
    )
    return struct.pack("<I", 4 + len(block)) + block


def build_key_value_data(pairs: dict) -> bytes:
    """Serialize key/value metadata, sorted by key, each entry 4-byte aligned."""
    data = b""
    for key in sorted(pairs):
        entry = key.encode("utf-8") + b"\x00" + pairs[key].encode("utf-8") + b"\x00"
        data += struct.pack("<I", len(entry)) + entry
        data += b"\x00" * (-len(data) % 4)
    return data


def encode_ktx2_cubemap(packed_faces: np.ndarray, compression_level: int) -> bytes:
    """Build a KTX2 file from packed E5B9G9R9 faces.

    Args:
        packed_faces: uint32 array with shape (6, res, res)
        compression_level: Zstandard compression level

    Returns:
        bytes: Complete KTX2 file
    """
    if packed_faces.ndim != 3 or packed_faces.shape[0] != FACE_COUNT:
        raise ValueError("Packed faces must have shape (6, res, res)")
    resolution = packed_faces.shape[1]
    if packed_faces.shape[2] != resolution:
        raise ValueError("Cubemap faces must be square")

    level_data = np.ascontiguousarray(packed_faces, dtype="<u4").tobytes()
    compressed = zstandard.ZstdCompressor(level=compression_level).compress(level_data)

    dfd = build_data_format_descriptor()
    kvd = build_key_value_data({"KTXwriter": f"skyrender {__version__}"})

    level_index_offset = len(KTX2_IDENTIFIER) + struct.calcsize(_HEADER_FORMAT)
    dfd_offset = level_index_offset + struct.calcsize(_LEVEL_INDEX_FORMAT)
    kvd_offset = dfd_offset + len(dfd)
    # Supercompressed level data needs no alignment padding
    level_offset = kvd_offset + len(kvd)

    header = struct.pack(
        _HEADER_FORMAT,
        VK_FORMAT_E5B9G9R9_UFLOAT_PACK32,
        4,  # typeSize of a packed 32-bit texel
        resolution,
        resolution,
        0,  # pixelDepth
        0,  # layerCount: not an array texture
        FACE_COUNT,
        1,  # levelCount
        SUPERCOMPRESSION_ZSTD,
        dfd_offset,
        len(dfd),
        kvd_offset,
        len(kvd),
        0,  # sgdByteOffset
        0,  # sgdByteLength
    )
    level_index = struct.pack(
        _LEVEL_INDEX_FORMAT, level_offset, len(compressed), len(level_data)
    )

    return KTX2_IDENTIFIER + header + level_index + dfd + kvd + compressed


def write_hdr_cubemap(cubemap: Cubemap, compression_level: int, output_path) -> None:
    """Pack the cubemap to E5B9G9R9 and write it as a KTX2 file.

    Raises:
        EncodeError: If compression or writing fails
    """
    packed = float3_to_rgb9e5(cubemap.data)
    try:
        atomic_write_bytes(output_path, encode_ktx2_cubemap(packed, compression_level))
    except (OSError, ValueError, zstandard.ZstdError) as e:
        raise EncodeError(str(output_path), str(e)) from e
