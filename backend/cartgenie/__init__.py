"""CartGenie - grocery assistant backend and client library."""

__version__ = "1.0.0"
