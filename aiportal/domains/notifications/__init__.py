"""Notifications domain: best-effort pushes to an owner's live connection."""
