"""Service catalog domain."""
