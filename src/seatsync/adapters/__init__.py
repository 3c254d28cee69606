"""Adapters for the upstream seat and identity services."""
