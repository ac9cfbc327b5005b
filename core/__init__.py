"""Core logging utilities for NVMe validation."""
