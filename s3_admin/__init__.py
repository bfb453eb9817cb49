"""S3 administration service: bucket and object management over S3-compatible storage."""

__version__ = "1.0.0"
