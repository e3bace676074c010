"""User entity: the identity anchor every session and email change points at."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from nonceauth.domain.entities.secret_hasher import SecretHasher


@dataclass
class User:
    """A registered user.

    Attributes:
        email_address: Unique address, changed only by a confirmed email change.
        id: Unique identifier (UUID string).
        session_nonces: Hashes of live per-device session nonces, oldest first.
        verified: Whether the user may authenticate.
        created_at: When the user was created (set by the store).
        updated_at: When the user was last saved (set by the store).
    """

    email_address: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    session_nonces: list[str] = field(default_factory=list)
    verified: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("User ID is required")
        if not self.email_address:
            raise ValueError("Email address is required")

    def add_session_nonce(self, nonce_hash: str) -> None:
        """Record a new device session by the hash of its nonce."""
        self.session_nonces = [*self.session_nonces, nonce_hash]

    def find_session(self, session_id: str, codec: SecretHasher) -> int:
        """Index of the stored hash matching ``session_id``, or -1."""
        return codec.find_match(session_id, self.session_nonces)

    def remove_session(self, session_id: str, codec: SecretHasher) -> bool:
        """Drop the one session matching ``session_id``.

        Returns:
            True if a session was removed, False if none matched.
        """
        index = self.find_session(session_id, codec)
        if index == -1:
            return False
        self.session_nonces = self.session_nonces[:index] + self.session_nonces[index + 1 :]
        return True

    def clear_sessions(self) -> int:
        """Drop every session. Returns how many there were."""
        count = len(self.session_nonces)
        self.session_nonces = []
        return count
