"""Helpers for a PowerStore container storage driver: CSI types, validation,
networking, target discovery, file-system and Kubernetes node utilities."""

__version__ = "0.1.0"