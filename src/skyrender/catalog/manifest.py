"""Gaia DR3 shard manifest (the archive's _MD5SUM.txt listing)."""

from pathlib import Path
from typing import Optional

import requests

from ..errors import ManifestError
from ..fileio import atomic_write_bytes
from ..models.catalog import ShardEntry

GAIA_SOURCE_URL = "https://cdn.gea.esac.esa.int/Gaia/gdr3/gaia_source/"
MANIFEST_FILENAME = "_MD5SUM.txt"


def parse_manifest(text: str, source: str = "manifest") -> list[ShardEntry]:
    """Parse '<md5> <filename>' lines into shard entries, in listing order.

    Args:
        text: Manifest contents
        source: Description of where the text came from, for error messages

    Returns:
        List of ShardEntry

    Raises:
        ManifestError: If a line is malformed or no shards are listed
    """
    entries = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) != 2:
            raise ManifestError(
                source, f"line {line_number} is not '<checksum> <filename>'"
            )

        checksum, filename = parts
        entries.append(ShardEntry(checksum=checksum.lower(), filename=filename))

    if not entries:
        raise ManifestError(source, "no shards listed")

    return entries


def load_manifest(path) -> list[ShardEntry]:
    """Load and parse a manifest file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(str(path), str(e)) from e

    return parse_manifest(text, source=str(path))


def fetch_manifest(
    cache_dir: Path, timeout: float, session: Optional[requests.Session] = None
) -> Path:
    """Download the archive manifest into the cache directory once.

    An existing cached manifest is reused, so the set of shards stays fixed for
    the lifetime of a cache directory.

    Returns:
        Path of the cached manifest
    """
    path = Path(cache_dir) / MANIFEST_FILENAME
    if path.exists():
        return path

    url = GAIA_SOURCE_URL + MANIFEST_FILENAME
    session = session or requests.Session()
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ManifestError(url, str(e)) from e

    # Validate before caching so a bad download is not kept
    parse_manifest(response.text, source=url)
    try:
        atomic_write_bytes(path, response.content)
    except OSError as e:
        raise ManifestError(str(path), f"unable to cache manifest: {e}") from e

    return path


def resolve_manifest(
    cache_dir: Path,
    manifest_path=None,
    timeout: float = 60.0,
    session: Optional[requests.Session] = None,
) -> list[ShardEntry]:
    """Load the manifest from ``manifest_path`` or the cache directory."""
    if manifest_path is None:
        manifest_path = fetch_manifest(cache_dir, timeout, session)

    return load_manifest(manifest_path)
