"""HTTP API for NonceAuth."""
