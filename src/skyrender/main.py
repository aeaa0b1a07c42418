import argparse
import os
import sys
import threading
import time
from itertools import cycle
from pathlib import Path
from typing import Optional

from . import __version__
from .catalog.manifest import resolve_manifest
from .catalog.shards import (
    DEFAULT_BACKOFF_S,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_S,
    DEFAULT_WORKERS,
    ingest_shards,
    iter_cached_records,
)
from .color.blackbody import build_color_table
from .errors import (
    CacheCorruptError,
    ConfigError,
    EncodeError,
    ManifestError,
    ShardIngestError,
    handle_error,
)
from .models import MAX_COMPRESSION_LEVEL, Cubemap, RenderConfig
from .output.bright_stars import write_bright_stars
from .output.images import face_strip_image, net_image, save_png
from .output.ktx2 import write_hdr_cubemap
from .renderer.accumulator import accumulate_catalog
from .renderer.solid_angle import normalize_by_solid_angle


class Spinner:
    """Simple terminal spinner for long-running operations."""

    def __init__(self, message: str):
        self.message = message
        self._stop_event = threading.Event()
        self._spinner_thread = None
        self._chars = cycle(["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"])

    def _spin(self):
        while not self._stop_event.is_set():
            char = next(self._chars)
            sys.stdout.write(f"\r{self.message} {char} ")
            sys.stdout.flush()
            time.sleep(0.1)

    def start(self):
        self._stop_event.clear()
        self._spinner_thread = threading.Thread(target=self._spin, daemon=True)
        self._spinner_thread.start()

    def stop(self):
        if self._spinner_thread:
            self._stop_event.set()
            self._spinner_thread.join()
            sys.stdout.write("\r" + " " * (len(self.message) + 3) + "\r")
            sys.stdout.flush()


def default_cache_dir() -> Path:
    """Per-user cache directory for downloaded shards."""
    base = os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache"
    return Path(base) / "skyrender"


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Gaia DR3 star catalog into an HDR cubemap skybox."
    )
    parser.add_argument(
        "--resolution",
        "-r",
        type=int,
        default=1024,
        help="Resolution of each cubemap face in pixels (default: 1024)",
    )
    parser.add_argument(
        "--min-magnitude",
        "-m",
        type=float,
        default=None,
        help="Stars brighter than this magnitude go to bright-stars.bin "
        "instead of the cubemap (default: -10)",
    )
    parser.add_argument(
        "--exposure-value",
        "-e",
        type=float,
        default=-7.0,
        help="Exposure value for the non-HDR output images (default: -7.0)",
    )
    parser.add_argument(
        "--compression-level",
        "-c",
        type=int,
        default=MAX_COMPRESSION_LEVEL,
        help="Zstandard compression level for the HDR cubemap. Higher values give "
        f"smaller files but take longer (maximum and default: {MAX_COMPRESSION_LEVEL})",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Directory for downloaded catalog shards (default: ~/.cache/skyrender)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for the output files (default: current directory)",
    )
    parser.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="Local shard manifest in _MD5SUM.txt format "
        "(default: download the Gaia DR3 listing once into the cache directory)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of parallel shard downloads (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRIES,
        help=f"Retries per shard on transient failures (default: {DEFAULT_RETRIES})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        help=f"Timeout for each download in seconds (default: {DEFAULT_TIMEOUT_S:.0f})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print configuration and per-shard progress",
    )
    return parser.parse_args()


def output_paths(output_dir: Path, resolution: int) -> dict[str, Path]:
    """Output file paths, named after the zero-padded face resolution."""
    size = f"{resolution:04}x{resolution:04}"
    return {
        "cubemap": output_dir / f"cubemap-{size}.png",
        "net": output_dir / f"net-{size}.png",
        "hdr": output_dir / f"hdr-cubemap-{size}.ktx2",
        "bright_stars": output_dir / "bright-stars.bin",
    }


def print_verbose_info(config: RenderConfig, cache_dir: Path, output_dir: Path):
    """Print the effective configuration."""
    print("=== VERBOSE: Configuration ===")
    print(f"  Resolution: {config.resolution} x {config.resolution} per face")
    print(f"  Bright-star cutoff: magnitude {config.magnitude_cutoff:.2f}")
    print(f"  Exposure value: {config.exposure_value:.2f}")
    print(f"  Compression level: {config.compression_level}")
    print(f"  Cache directory: {cache_dir}")
    print(f"  Output directory: {output_dir}")
    print("=== END VERBOSE ===")
    print()


def render_skybox(
    config: RenderConfig,
    cache_dir: Path,
    output_dir: Path,
    manifest_path: Optional[Path] = None,
    workers: int = DEFAULT_WORKERS,
    retries: int = DEFAULT_RETRIES,
    timeout: float = DEFAULT_TIMEOUT_S,
    backoff_s: float = DEFAULT_BACKOFF_S,
    verbose: bool = False,
) -> int:
    """Ingest the catalog and write the cubemap outputs.

    Args:
        config: Render options
        cache_dir: Shard cache directory
        output_dir: Directory for the output files
        manifest_path: Local manifest file (None to use the cached Gaia listing)
        workers: Number of download threads
        retries: Retries per shard
        timeout: Per-request timeout in seconds
        backoff_s: Base delay between retries in seconds
        verbose: If True, print configuration and per-shard progress

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        cache_dir = Path(cache_dir)
        output_dir = Path(output_dir)
        cache_dir.mkdir(parents=True, exist_ok=True)
        output_dir.mkdir(parents=True, exist_ok=True)

        if verbose:
            print_verbose_info(config, cache_dir, output_dir)

        try:
            entries = resolve_manifest(cache_dir, manifest_path)
        except ManifestError as e:
            return handle_error(e, "loading the shard manifest")

        print(f"Catalog manifest lists {len(entries)} shards")

        def report_shard(entry, count):
            if verbose:
                print(f"  Cached {entry.filename} ({count} stars)")

        try:
            downloaded = ingest_shards(
                entries,
                cache_dir,
                workers=workers,
                timeout=timeout,
                retries=retries,
                backoff_s=backoff_s,
                on_shard=report_shard,
            )
        except ShardIngestError as e:
            return handle_error(e, "ingesting catalog shards")

        print(f"Downloaded {downloaded} shards, {len(entries) - downloaded} cached")

        color_table = build_color_table()
        cubemap = Cubemap(config.resolution)

        spinner = Spinner("Accumulating stars")
        spinner.start()
        try:
            try:
                bright_stars = accumulate_catalog(
                    cubemap,
                    iter_cached_records(entries, cache_dir),
                    color_table,
                    config.magnitude_cutoff,
                )
                normalize_by_solid_angle(cubemap)
            finally:
                spinner.stop()
        except CacheCorruptError as e:
            return handle_error(e, "reading the shard cache")
        print("Accumulation complete")

        paths = output_paths(output_dir, config.resolution)
        metadata = {
            "renderer_id": f"skyrender-{__version__}",
            "resolution": str(config.resolution),
            "exposure_value": str(config.exposure_value),
        }

        try:
            strip = face_strip_image(cubemap, config.exposure_value)
            save_png(strip, {**metadata, "layout": "strip"}, paths["cubemap"])
            save_png(net_image(strip), {**metadata, "layout": "net"}, paths["net"])
            write_hdr_cubemap(cubemap, config.compression_level, paths["hdr"])
            wrote_bright_stars = write_bright_stars(bright_stars, paths["bright_stars"])
        except EncodeError as e:
            return handle_error(e, "writing output files")

        print(f"  Face strip: {paths['cubemap']}")
        print(f"  Net: {paths['net']}")
        print(f"  HDR cubemap: {paths['hdr']}")
        if wrote_bright_stars:
            print(f"  Bright stars: {paths['bright_stars']} ({len(bright_stars)} stars)")

        return 0

    except Exception as e:
        return handle_error(e, "rendering skybox")


def build_config(args) -> RenderConfig:
    """Validate command-line options and build the render configuration."""
    if args.workers < 1:
        raise ConfigError("--workers", args.workers, "must be at least 1")
    if args.retries < 0:
        raise ConfigError("--retries", args.retries, "must not be negative")
    if args.timeout <= 0:
        raise ConfigError("--timeout", args.timeout, "must be positive")

    return RenderConfig(
        resolution=args.resolution,
        min_magnitude=args.min_magnitude,
        exposure_value=args.exposure_value,
        compression_level=args.compression_level,
    )


def main():
    """CLI entry point."""
    args = parse_args()

    try:
        config = build_config(args)
    except ConfigError as e:
        sys.exit(handle_error(e, "validating options"))

    exit_code = render_skybox(
        config,
        cache_dir=args.cache_dir or default_cache_dir(),
        output_dir=args.output_dir,
        manifest_path=args.manifest,
        workers=args.workers,
        retries=args.retries,
        timeout=args.timeout,
        verbose=args.verbose,
    )

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
