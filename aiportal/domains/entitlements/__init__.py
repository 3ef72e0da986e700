"""Entitlements domain: subscriptions, trials and grant resolution."""
