"""Error handling utilities for skybox rendering."""

import sys
from typing import Mapping, Optional


class SkyrenderError(Exception):
    """Base exception for skyrender-specific errors."""

    def __init__(self, message: str, suggestions: Optional[list[str]] = None):
        """Initialize with message and optional suggestions.

        Args:
            message: Error description
            suggestions: Optional list of actionable suggestions
        """
        self.message = message
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with suggestions."""
        formatted = f"{self.message}"
        if self.suggestions:
            formatted += "\n\nSuggestions:"
            for suggestion in self.suggestions:
                formatted += f"\n  - {suggestion}"
        return formatted


class ConfigError(SkyrenderError):
    """Raised when a configuration option has an invalid value."""

    def __init__(self, option: str, value, requirement: str):
        message = f"Invalid value for {option}: {value!r} ({requirement})"
        suggestions = [
            "Run with --help to see the accepted options and their defaults",
        ]
        super().__init__(message, suggestions)


class ManifestError(SkyrenderError):
    """Raised when the shard manifest cannot be read or parsed."""

    def __init__(self, source: str, reason: str):
        message = f"Unable to load shard manifest from {source}: {reason}"
        suggestions = [
            "Each manifest line must read '<md5 checksum> <shard filename>'",
            "Delete the cached _MD5SUM.txt to download a fresh copy",
            "Pass --manifest to use a local manifest file instead",
        ]
        super().__init__(message, suggestions)


class ShardFetchError(SkyrenderError):
    """Raised when a single catalog shard cannot be downloaded or cached."""

    def __init__(self, filename: str, reason: str, retryable: bool = True):
        self.filename = filename
        self.reason = reason
        self.retryable = retryable
        super().__init__(f"Failed to ingest shard {filename}: {reason}")


class ShardIngestError(SkyrenderError):
    """Raised after ingestion when one or more shards could not be cached."""

    def __init__(self, failures: Mapping[str, str], total: int):
        self.failures = dict(failures)
        lines = [f"{len(self.failures)} of {total} shards failed to ingest:"]
        for filename in sorted(self.failures):
            lines.append(f"  {filename}: {self.failures[filename]}")
        suggestions = [
            "Re-run the command: shards that were cached successfully are not downloaded again",
            "Increase --retries or --timeout on unreliable connections",
        ]
        super().__init__("\n".join(lines), suggestions)


class CacheCorruptError(SkyrenderError):
    """Raised when a shard cache file does not hold whole records."""

    def __init__(self, path: str, size: int):
        message = f"Cache file {path} is {size} bytes, not a multiple of 16"
        suggestions = [
            f"Delete {path} so the shard is downloaded again",
        ]
        super().__init__(message, suggestions)


class EncodeError(SkyrenderError):
    """Raised when an output image or container cannot be written."""

    def __init__(self, path: str, reason: str):
        message = f"Unable to write {path}: {reason}"
        suggestions = [
            "Check that the output directory exists and is writable",
            "Check that enough disk space is available",
        ]
        super().__init__(message, suggestions)


def print_error(error: Exception) -> None:
    """Print error to stderr with formatted output.

    Args:
        error: Exception to print
    """
    print(f"Error: {error}", file=sys.stderr)

    if isinstance(error, SkyrenderError):
        if error.suggestions:
            print(file=sys.stderr)


def handle_error(error: Exception, context: Optional[str] = None) -> int:
    """Handle an error with optional context and return exit code.

    Args:
        error: Exception that occurred
        context: Optional description of what was being attempted

    Returns:
        Exit code (1 for error)
    """
    if context:
        print(f"Error while {context}:", file=sys.stderr)

    print_error(error)

    import traceback

    if not isinstance(error, SkyrenderError):
        traceback.print_exc()

    return 1
