"""What the entities need from a secret codec.

The Argon2 implementation lives in the auth infrastructure and is handed in
by the services.
"""

from typing import Protocol


class SecretHasher(Protocol):
    def generate_secret(self) -> str: ...

    def hash_secret(self, raw: str) -> str: ...

    def verify_secret(self, raw: str | None, hashed: str | None) -> bool: ...

    def find_match(self, raw: str | None, hashes: list[str]) -> int: ...
