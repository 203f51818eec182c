"""Shared helpers: logging setup, YAML settings and tabular file I/O."""
