"""Logging and Prometheus metrics for podplacement."""
