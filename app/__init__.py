"""TCGHit API."""
