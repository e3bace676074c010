"""Secret generation and one-way hashing using Argon2.

Login codes, login nonces, session nonces, and email change slugs are all
random secrets that the server hands out exactly once. Only their Argon2id
hashes are stored, so a leaked database never yields a usable credential.
"""

import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# Bytes of entropy in every generated secret.
SECRET_NBYTES = 32


class SecretCodec:
    """Generates random secrets and produces/verifies their hashes."""

    def __init__(self, hasher: PasswordHasher | None = None) -> None:
        """Initialize the codec.

        Args:
            hasher: Argon2 hasher to use. Defaults to argon2-cffi's recommended
                parameters; tests inject a cheaper one.
        """
        self._hasher = hasher or PasswordHasher()

    @staticmethod
    def generate_secret() -> str:
        """Generate a URL-safe secret with 256 bits of entropy.

        Example:
            >>> len(SecretCodec.generate_secret()) >= 43
            True
        """
        return secrets.token_urlsafe(SECRET_NBYTES)

    def hash_secret(self, raw: str) -> str:
        """Hash a secret using Argon2id.

        Args:
            raw: The raw secret.

        Returns:
            The encoded Argon2 hash, including its random salt.

        Raises:
            ValueError: If ``raw`` is not a non-empty string.
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Secret must be a non-empty string")
        return self._hasher.hash(raw)

    def verify_secret(self, raw: str | None, hashed: str | None) -> bool:
        """Check a raw secret against a stored hash.

        Uses constant-time comparison. Fails closed: a missing or malformed
        input returns False instead of raising.

        Args:
            raw: The secret presented by a client.
            hashed: The stored hash.

        Returns:
            True if ``hashed`` was produced from ``raw``, False otherwise.
        """
        if not isinstance(raw, str) or not raw:
            return False
        if not isinstance(hashed, str) or not hashed:
            return False
        try:
            return self._hasher.verify(hashed, raw)
        except (VerificationError, InvalidHashError):
            return False

    def find_match(self, raw: str | None, hashes: list[str]) -> int:
        """Return the index of the first hash produced from ``raw``, or -1.

        Each comparison costs a full Argon2 evaluation; the lists scanned here
        hold one entry per device, so they stay short.
        """
        if not isinstance(raw, str) or not raw:
            return -1
        for index, hashed in enumerate(hashes):
            if self.verify_secret(raw, hashed):
                return index
        return -1


# Default secret codec instance
secret_codec = SecretCodec()
