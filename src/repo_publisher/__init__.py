"""Republishes version-controlled repository content to an object store on every commit."""

__version__ = "0.1.0"
