"""Land registry: parcel registration and ownership transfer service."""

__version__ = "0.1.0"
