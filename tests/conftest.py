import gzip
import hashlib

import pytest
import requests

from skyrender.catalog.shards import (
    DEC_COLUMN,
    MAGNITUDE_COLUMN,
    RA_COLUMN,
    TEMPERATURE_COLUMN,
    shard_url,
)
from skyrender.models import ShardEntry

GAIA_COLUMN_COUNT = 152


def gaia_row(ra="", dec="", magnitude="", temperature="", columns=GAIA_COLUMN_COUNT):
    """Build one gaia_source CSV row with the four used columns filled in."""
    fields = [""] * columns
    for column, value in (
        (RA_COLUMN, ra),
        (DEC_COLUMN, dec),
        (MAGNITUDE_COLUMN, magnitude),
        (TEMPERATURE_COLUMN, temperature),
    ):
        if column < columns:
            fields[column] = str(value)
    return ",".join(fields)


def gaia_shard(rows, comments=("# Gaia DR3 gaia_source",)):
    """Gzip-compressed shard body: comment lines, header, then rows."""
    header = ",".join(f"col{i}" for i in range(GAIA_COLUMN_COUNT))
    text = "\n".join(list(comments) + [header] + list(rows)) + "\n"
    return gzip.compress(text.encode("utf-8"), mtime=0)


def shard_entry(filename, body):
    return ShardEntry(checksum=hashlib.md5(body).hexdigest(), filename=filename)


class FakeResponse:
    def __init__(self, content=b"", status_code=200):
        self.content = content
        self.status_code = status_code

    @property
    def text(self):
        return self.content.decode("utf-8")

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session, serving scripted responses by URL.

    Each URL maps to a list of outcomes consumed in order; the last outcome
    repeats. An outcome is bytes, a FakeResponse, or an exception to raise.
    """

    def __init__(self, outcomes):
        self.outcomes = {url: list(values) for url, values in outcomes.items()}
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if url not in self.outcomes:
            return FakeResponse(status_code=404)

        values = self.outcomes[url]
        outcome = values.pop(0) if len(values) > 1 else values[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, FakeResponse):
            return outcome
        return FakeResponse(outcome)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def sample_shards():
    """Two small shards with their manifest entries and a session serving them."""
    first = gaia_shard(
        [
            gaia_row(0.0, 0.0, 0.0, 5800.0),
            gaia_row(90.0, 45.0, 12.5, ""),
            "garbage",
            gaia_row("null", 10.0, 5.0, 4000.0),
        ]
    )
    second = gaia_shard(
        [
            gaia_row(180.0, -30.0, 8.0, 9000.0),
            gaia_row(270.0, 60.0, -12.0, 3500.0),
        ]
    )
    entries = [
        shard_entry("GaiaSource_000000-003111.csv.gz", first),
        shard_entry("GaiaSource_003112-005263.csv.gz", second),
    ]
    session = FakeSession(
        {
            shard_url(entries[0].filename): [first],
            shard_url(entries[1].filename): [second],
        }
    )
    return entries, session
