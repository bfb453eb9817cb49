"""Prometheus metrics registry."""
