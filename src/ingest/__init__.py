"""Document import pipeline.

This package extracts schema metadata and rows from parsed documents,
transcodes values, and reconciles schemas before writing tables.
"""
