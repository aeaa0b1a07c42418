from .manifest import (
    GAIA_SOURCE_URL,
    MANIFEST_FILENAME,
    load_manifest,
    parse_manifest,
    resolve_manifest,
)
from .shards import (
    ingest_shard,
    ingest_shards,
    iter_cached_records,
    load_cached_records,
    pack_records,
    parse_record,
    parse_shard_lines,
    unpack_records,
)

__all__ = [
    "GAIA_SOURCE_URL",
    "MANIFEST_FILENAME",
    "load_manifest",
    "parse_manifest",
    "resolve_manifest",
    "ingest_shard",
    "ingest_shards",
    "iter_cached_records",
    "load_cached_records",
    "pack_records",
    "parse_record",
    "parse_shard_lines",
    "unpack_records",
]
