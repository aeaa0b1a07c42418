"""Tests for configuration, data models and error formatting."""

import numpy as np
import pytest

from skyrender.errors import (
    CacheCorruptError,
    ConfigError,
    ShardFetchError,
    ShardIngestError,
    SkyrenderError,
    handle_error,
)
from skyrender.models import (
    BRIGHT_STAR_DTYPE,
    CatalogRecord,
    Cubemap,
    RenderConfig,
    ShardEntry,
)


class TestRenderConfig:
    def test_defaults(self):
        config = RenderConfig()

        assert config.resolution == 1024
        assert config.exposure_value == -7.0
        assert config.compression_level == 22
        assert config.magnitude_cutoff == -10.0

    def test_explicit_cutoff(self):
        assert RenderConfig(min_magnitude=-3.5).magnitude_cutoff == -3.5
        assert RenderConfig(min_magnitude=0.0).magnitude_cutoff == 0.0

    def test_invalid_resolution(self):
        with pytest.raises(ConfigError, match="resolution"):
            RenderConfig(resolution=0)

    @pytest.mark.parametrize("level", [0, 23, -1])
    def test_invalid_compression_level(self, level):
        with pytest.raises(ConfigError, match="between 1 and 22"):
            RenderConfig(compression_level=level)

    def test_frozen(self):
        config = RenderConfig()
        with pytest.raises(AttributeError):
            config.resolution = 16


class TestCubemap:
    def test_starts_black(self):
        cubemap = Cubemap(8)

        assert cubemap.data.shape == (6, 8, 8, 3)
        assert cubemap.data.dtype == np.float32
        assert not cubemap.data.any()

    def test_views_share_memory(self):
        cubemap = Cubemap(2)

        cubemap.as_strip()[2, 1] = [1.0, 2.0, 3.0]
        cubemap.texels()[0] = [4.0, 5.0, 6.0]

        assert np.array_equal(cubemap.face(1)[0, 1], [1.0, 2.0, 3.0])
        assert np.array_equal(cubemap.data[0, 0, 0], [4.0, 5.0, 6.0])

    def test_rejects_empty_resolution(self):
        with pytest.raises(ValueError):
            Cubemap(0)


class TestCatalogTypes:
    def test_shard_cache_path(self, tmp_path):
        entry = ShardEntry(checksum="abc", filename="GaiaSource_000000-003111.csv.gz")

        assert entry.cache_path(tmp_path) == tmp_path / "GaiaSource_000000-003111.csv.gz.bin"

    def test_record_row(self):
        record = CatalogRecord(10.0, -20.0, 4.5)

        assert record.as_row() == (10.0, -20.0, 4.5, 0.0)

    def test_bright_star_layout(self):
        assert BRIGHT_STAR_DTYPE.itemsize == 16
        assert BRIGHT_STAR_DTYPE.names == ("ra", "dec", "magnitude", "r", "g", "b", "pad")
        assert BRIGHT_STAR_DTYPE.fields["r"][1] == 12


class TestErrors:
    def test_suggestions_in_message(self):
        error = SkyrenderError("Something broke", ["Try this", "Or that"])

        assert str(error) == "Something broke\n\nSuggestions:\n  - Try this\n  - Or that"

    def test_without_suggestions(self):
        assert str(SkyrenderError("Plain")) == "Plain"

    def test_config_error(self):
        error = ConfigError("--workers", 0, "must be at least 1")

        assert "Invalid value for --workers: 0 (must be at least 1)" in str(error)
        assert error.suggestions

    def test_shard_fetch_error_fields(self):
        error = ShardFetchError("a.csv.gz", "HTTP 404", retryable=False)

        assert error.filename == "a.csv.gz"
        assert error.reason == "HTTP 404"
        assert error.retryable is False
        assert "a.csv.gz" in str(error)

    def test_ingest_error_lists_failures_sorted(self):
        error = ShardIngestError({"b.csv.gz": "timed out", "a.csv.gz": "HTTP 500"}, 5)

        message = str(error)
        assert message.startswith("2 of 5 shards failed to ingest:")
        assert message.index("a.csv.gz: HTTP 500") < message.index("b.csv.gz: timed out")
        assert error.failures == {"b.csv.gz": "timed out", "a.csv.gz": "HTTP 500"}

    def test_cache_corrupt_error(self):
        assert "not a multiple of 16" in str(CacheCorruptError("/tmp/x.bin", 17))

    def test_handle_error_returns_exit_code(self, capsys):
        code = handle_error(CacheCorruptError("x.bin", 3), "reading the shard cache")

        assert code == 1
        err = capsys.readouterr().err
        assert "Error while reading the shard cache:" in err
        assert "x.bin" in err
