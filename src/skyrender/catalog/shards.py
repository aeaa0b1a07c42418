"""Download, parse and cache Gaia DR3 gaia_source shards.

Each shard is a gzip-compressed CSV file. Only four columns are kept per
star and written to ``<cache_dir>/<shard>.bin`` as little-endian float32
quadruples (ra, dec, magnitude, temperature). A shard whose cache file exists
is never downloaded again.
"""

import gzip
import hashlib
import io
import math
import time
import zlib
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

import numpy as np
import requests

from ..errors import CacheCorruptError, ShardFetchError, ShardIngestError
from ..fileio import atomic_write_bytes
from ..models.catalog import RECORD_DTYPE, RECORD_FIELDS, ShardEntry
from .manifest import GAIA_SOURCE_URL

# Column positions in the gaia_source CSV layout
RA_COLUMN = 5
DEC_COLUMN = 7
MAGNITUDE_COLUMN = 69  # phot_g_mean_mag
TEMPERATURE_COLUMN = 130  # teff_gspphot

RECORD_SIZE = RECORD_FIELDS * RECORD_DTYPE.itemsize

DEFAULT_TIMEOUT_S = 3600.0
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_S = 2.0
DEFAULT_WORKERS = 8

RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})


def shard_url(filename: str) -> str:
    return GAIA_SOURCE_URL + filename


def _parse_float(field: bytes) -> Optional[float]:
    try:
        value = float(field)
    except ValueError:
        return None

    if not math.isfinite(value):
        return None

    return value


def parse_record(line: bytes) -> Optional[tuple[float, float, float, float]]:
    """Parse one CSV data row into (ra, dec, magnitude, temperature).

    Returns None when the row is too short or ra, dec or magnitude is not a
    finite number. A missing or unparseable temperature becomes 0 (unknown).
    """
    parts = line.split(b",")
    if len(parts) <= MAGNITUDE_COLUMN:
        return None

    ra = _parse_float(parts[RA_COLUMN])
    dec = _parse_float(parts[DEC_COLUMN])
    magnitude = _parse_float(parts[MAGNITUDE_COLUMN])
    if ra is None or dec is None or magnitude is None:
        return None

    temperature = None
    if len(parts) > TEMPERATURE_COLUMN:
        temperature = _parse_float(parts[TEMPERATURE_COLUMN])

    return ra, dec, magnitude, temperature or 0.0


def parse_shard_lines(lines: Iterable[bytes]) -> np.ndarray:
    """Parse decompressed shard lines into an (N, 4) float32 record array.

    Empty lines and '#' comment lines are skipped, as is the first remaining
    line (the column header). Rows that fail to parse are dropped.

    Args:
        lines: Raw lines, with or without trailing newlines

    Returns:
        np.ndarray: float32 records in source row order
    """
    rows = []
    header_seen = False
    for line in lines:
        line = line.rstrip(b"\r\n")
        if not line or line.startswith(b"#"):
            continue
        if not header_seen:
            header_seen = True
            continue

        record = parse_record(line)
        if record is not None:
            rows.append(record)

    return np.array(rows, dtype=np.float32).reshape(-1, RECORD_FIELDS)


def pack_records(records: np.ndarray) -> bytes:
    """Serialize records to the cache format: little-endian float32 quadruples."""
    records = np.asarray(records, dtype=np.float32).reshape(-1, RECORD_FIELDS)
    return np.ascontiguousarray(records, dtype=RECORD_DTYPE).tobytes()


def unpack_records(data: bytes) -> np.ndarray:
    """Deserialize cache bytes into an (N, 4) float32 record array."""
    if len(data) % RECORD_SIZE:
        raise ValueError(f"Record data must be a multiple of {RECORD_SIZE} bytes")

    return np.frombuffer(data, dtype=RECORD_DTYPE).reshape(-1, RECORD_FIELDS)


def load_cached_records(path) -> np.ndarray:
    """Read one shard cache file.

    Raises:
        CacheCorruptError: If the file does not hold a whole number of records
    """
    data = Path(path).read_bytes()
    if len(data) % RECORD_SIZE:
        raise CacheCorruptError(str(path), len(data))

    return unpack_records(data)


def iter_cached_records(
    entries: Iterable[ShardEntry], cache_dir: Path
) -> Iterator[np.ndarray]:
    """Yield the cached records of each shard, in manifest order."""
    for entry in entries:
        yield load_cached_records(entry.cache_path(cache_dir))


def download_shard(
    entry: ShardEntry, session: requests.Session, timeout: float
) -> bytes:
    """Fetch the compressed shard and verify it against the manifest checksum.

    Raises:
        ShardFetchError: On network failure, bad HTTP status or checksum mismatch
    """
    url = shard_url(entry.filename)
    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise ShardFetchError(entry.filename, f"request failed: {e}") from e

    if response.status_code != 200:
        raise ShardFetchError(
            entry.filename,
            f"HTTP {response.status_code} from {url}",
            retryable=response.status_code in RETRYABLE_STATUS,
        )

    data = response.content
    checksum = hashlib.md5(data).hexdigest()
    if checksum != entry.checksum:
        raise ShardFetchError(
            entry.filename,
            f"checksum mismatch (expected {entry.checksum}, got {checksum})",
        )

    return data


def decode_shard(entry: ShardEntry, data: bytes) -> np.ndarray:
    """Decompress a downloaded shard and parse its rows."""
    try:
        with gzip.GzipFile(fileobj=io.BytesIO(data)) as stream:
            return parse_shard_lines(stream)
    except (OSError, EOFError, zlib.error) as e:
        raise ShardFetchError(entry.filename, f"decompression failed: {e}") from e


def ingest_shard(
    entry: ShardEntry,
    cache_dir: Path,
    session: requests.Session,
    timeout: float = DEFAULT_TIMEOUT_S,
    retries: int = DEFAULT_RETRIES,
    backoff_s: float = DEFAULT_BACKOFF_S,
) -> Optional[int]:
    """Make sure one shard is present in the cache.

    Transient failures are retried up to ``retries`` times, sleeping
    ``backoff_s * 2**attempt`` seconds between attempts.

    Args:
        entry: Shard to ingest
        cache_dir: Cache directory
        session: HTTP session used for the download
        timeout: Per-request timeout in seconds
        retries: Number of retries after the first attempt
        backoff_s: Base delay between attempts

    Returns:
        Number of records cached, or None if the cache file already existed

    Raises:
        ShardFetchError: When the shard could not be cached
    """
    cache_path = entry.cache_path(cache_dir)
    if cache_path.exists():
        return None

    attempt = 0
    while True:
        try:
            records = decode_shard(entry, download_shard(entry, session, timeout))
            break
        except ShardFetchError as e:
            if not e.retryable or attempt >= retries:
                raise
            time.sleep(backoff_s * 2**attempt)
            attempt += 1

    try:
        atomic_write_bytes(cache_path, pack_records(records))
    except OSError as e:
        raise ShardFetchError(
            entry.filename, f"unable to write cache file: {e}", retryable=False
        ) from e

    return len(records)


def ingest_shards(
    entries: list[ShardEntry],
    cache_dir: Path,
    workers: int = DEFAULT_WORKERS,
    timeout: float = DEFAULT_TIMEOUT_S,
    retries: int = DEFAULT_RETRIES,
    backoff_s: float = DEFAULT_BACKOFF_S,
    session_factory: Callable[[], requests.Session] = requests.Session,
    on_shard: Optional[Callable[[ShardEntry, Optional[int]], None]] = None,
) -> int:
    """Cache every shard in the manifest using a pool of worker threads.

    Shards already cached are skipped without network access. Each shard is
    downloaded in its own task with its own session; a failing shard does not
    stop the others.

    Args:
        entries: Manifest entries
        cache_dir: Cache directory
        workers: Number of worker threads
        timeout: Per-request timeout in seconds
        retries: Retries per shard
        backoff_s: Base retry delay in seconds
        session_factory: Creates the HTTP session for each task
        on_shard: Called with (entry, record_count) after each cached shard

    Returns:
        Number of shards downloaded in this run

    Raises:
        ShardIngestError: After all tasks finish, if any shard failed
    """
    cache_dir = Path(cache_dir)
    pending = [entry for entry in entries if not entry.cache_path(cache_dir).exists()]
    if not pending:
        return 0

    def run(entry: ShardEntry) -> Optional[int]:
        with session_factory() as session:
            return ingest_shard(entry, cache_dir, session, timeout, retries, backoff_s)

    failures: dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(run, entry): entry for entry in pending}
        for future in as_completed(futures):
            entry = futures[future]
            try:
                count = future.result()
            except ShardFetchError as e:
                failures[entry.filename] = e.reason
                continue

            if on_shard is not None:
                on_shard(entry, count)

    if failures:
        raise ShardIngestError(failures, len(entries))

    return len(pending)
