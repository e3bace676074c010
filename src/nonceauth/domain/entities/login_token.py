"""Login token entity.

A login request produces two independent secrets. The code is emailed to the
address owner; the nonce goes back to the client that made the request. Both
are needed to redeem the token, so neither a stolen inbox nor an observed
request alone is enough to log in.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from nonceauth.core.clock import expiry_from, utcnow
from nonceauth.domain.entities.secret_hasher import SecretHasher


@dataclass(frozen=True)
class LoginSecrets:
    """The raw login secret pair. Never stored."""

    code: str
    nonce: str


@dataclass
class LoginToken:
    """Pending login for an email address.

    Attributes:
        email_address: Address the login was requested for.
        code_hash: Hash of the emailed code.
        nonce_hash: Hash of the nonce returned to the client.
        expires_at: When the token stops being redeemable.
        id: Unique identifier (UUID string).
        created_at: When the token was created.
    """

    email_address: str
    code_hash: str
    nonce_hash: str
    expires_at: datetime
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def generate(
        cls,
        email_address: str,
        ttl: timedelta,
        codec: SecretHasher,
        now: datetime | None = None,
    ) -> tuple["LoginToken", LoginSecrets]:
        """Create a token and the raw secrets it was derived from.

        Args:
            email_address: Address requesting the login.
            ttl: Token lifetime.
            codec: Codec generating and hashing the secrets.
            now: Creation time. Defaults to the current time.

        Returns:
            A tuple of (LoginToken entity, raw LoginSecrets).
        """
        created_at = now or utcnow()
        secrets = LoginSecrets(code=codec.generate_secret(), nonce=codec.generate_secret())
        entity = cls(
            email_address=email_address,
            code_hash=codec.hash_secret(secrets.code),
            nonce_hash=codec.hash_secret(secrets.nonce),
            created_at=created_at,
            expires_at=expiry_from(created_at, ttl),
        )
        return entity, secrets

    def check(self, code: str | None, nonce: str | None, codec: SecretHasher) -> bool:
        """True only if both the code and the nonce match."""
        code_ok = codec.verify_secret(code, self.code_hash)
        nonce_ok = codec.verify_secret(nonce, self.nonce_hash)
        return code_ok and nonce_ok
