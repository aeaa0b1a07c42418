from .catalog import BRIGHT_STAR_DTYPE, RECORD_DTYPE, CatalogRecord, ShardEntry
from .config import MAX_COMPRESSION_LEVEL, RenderConfig
from .cubemap import FACE_COUNT, Cubemap

__all__ = [
    "BRIGHT_STAR_DTYPE",
    "RECORD_DTYPE",
    "CatalogRecord",
    "ShardEntry",
    "MAX_COMPRESSION_LEVEL",
    "RenderConfig",
    "FACE_COUNT",
    "Cubemap",
]
