"""Handle-addressed document trees.

This package parses raw JSON bytes into an immutable node arena and
exposes name lookups and array traversal over integer handles.
"""
