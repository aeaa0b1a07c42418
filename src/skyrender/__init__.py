"""Render the Gaia DR3 star catalog into an HDR all-sky cubemap."""

__version__ = "0.1.0"
