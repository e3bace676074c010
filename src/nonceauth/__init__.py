"""NonceAuth - passwordless, multi-device authentication.

Issues one-time login codes by email, keeps per-device session nonces behind
signed bearer tokens, and verifies email address changes. No secret is ever
stored in recoverable form.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
