"""Table storage layer.

This package persists keyed tables inside library directories and
exposes the SDK used by the CLI to import and inspect them.
"""
