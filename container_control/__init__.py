"""Control-plane adapter for an OCI container CLI."""

__version__ = "0.3.0"
