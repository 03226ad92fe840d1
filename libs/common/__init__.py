"""Shared utilities used across libraries."""
