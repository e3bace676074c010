"""Email change token entity."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from nonceauth.core.clock import expiry_from, utcnow
from nonceauth.domain.entities.secret_hasher import SecretHasher


@dataclass
class EmailChangeToken:
    """Pending request to move a user to a new email address.

    Attributes:
        user_id: ID of the requesting user.
        email_address: The requester's current address.
        new_email_address: The requested address.
        slug_hash: Hash of the verification slug sent to the new address.
        expires_at: When the token stops being redeemable.
        authenticated: Reserved; the token is deleted on success instead.
        id: Unique identifier (UUID string).
        created_at: When the token was created.
    """

    user_id: str
    email_address: str
    new_email_address: str
    slug_hash: str
    expires_at: datetime
    authenticated: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def generate(
        cls,
        user_id: str,
        email_address: str,
        new_email_address: str,
        ttl: timedelta,
        codec: SecretHasher,
        now: datetime | None = None,
    ) -> tuple["EmailChangeToken", str]:
        """Create a token and the raw slug it was derived from.

        Returns:
            A tuple of (EmailChangeToken entity, raw slug).
        """
        created_at = now or utcnow()
        slug = codec.generate_secret()
        entity = cls(
            user_id=user_id,
            email_address=email_address,
            new_email_address=new_email_address,
            slug_hash=codec.hash_secret(slug),
            created_at=created_at,
            expires_at=expiry_from(created_at, ttl),
        )
        return entity, slug

    def check(self, slug: str | None, codec: SecretHasher) -> bool:
        return codec.verify_secret(slug, self.slug_hash)
