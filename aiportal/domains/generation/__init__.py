"""Metered generation domain: quota-gated calls to text generators."""
