from .bright_stars import read_bright_stars, write_bright_stars
from .images import (
    NET_LAYOUT,
    extract_metadata,
    face_strip_image,
    net_image,
    save_png,
)
from .ktx2 import encode_ktx2_cubemap, write_hdr_cubemap

__all__ = [
    "read_bright_stars",
    "write_bright_stars",
    "NET_LAYOUT",
    "extract_metadata",
    "face_strip_image",
    "net_image",
    "save_png",
    "encode_ktx2_cubemap",
    "write_hdr_cubemap",
]
