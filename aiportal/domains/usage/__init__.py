"""Usage domain: append-only ledger and quota enforcement."""
