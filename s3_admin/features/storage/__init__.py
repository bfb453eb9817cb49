"""Bucket and object administration endpoints."""
