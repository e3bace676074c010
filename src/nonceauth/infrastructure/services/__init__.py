"""Infrastructure services (outbound email)."""
