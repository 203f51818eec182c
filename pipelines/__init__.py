"""Batch pipelines run from the command line."""
