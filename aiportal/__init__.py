"""AI Portal backend: metered AI generation behind subscription and trial entitlements."""
