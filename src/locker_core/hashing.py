"""Password hashing capabilities injected into the locker service."""

from __future__ import annotations

import hashlib
import hmac
import re
from typing import Protocol

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from locker_core.config import HasherConfig, HashScheme

_LEGACY_DIGEST_PATTERN = re.compile(r"[0-9a-fA-F]{64}")


class Hasher(Protocol):
    def hash(self, plaintext: str) -> str:
        """Return a one-way digest for the plaintext."""

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return True when the plaintext produces the digest."""


class Argon2Hasher:
    """Salted argon2id digests (the default for new registrations)."""

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost_kib: int = 65_536,
        parallelism: int = 4,
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost_kib,
            parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        try:
            return self._hasher.verify(digest, plaintext)
        except (VerificationError, InvalidHashError):
            return False


class Sha256Hasher:
    """Unsalted hex SHA-256, kept so legacy users.txt files still authenticate."""

    def hash(self, plaintext: str) -> str:
        return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()

    def verify(self, plaintext: str, digest: str) -> bool:
        expected = self.hash(plaintext).encode("utf-8")
        return hmac.compare_digest(expected, digest.strip().lower().encode("utf-8"))


class LegacyAwareHasher:
    """Hashes with the primary scheme; verifies legacy hex SHA-256 digests by their shape."""

    def __init__(self, primary: Hasher, legacy: Hasher | None = None) -> None:
        self.primary = primary
        self.legacy = legacy or Sha256Hasher()

    def hash(self, plaintext: str) -> str:
        return self.primary.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        if _LEGACY_DIGEST_PATTERN.fullmatch(digest.strip()):
            return self.legacy.verify(plaintext, digest)
        return self.primary.verify(plaintext, digest)


def build_hasher(config: HasherConfig) -> Hasher:
    if config.scheme == HashScheme.SHA256:
        return Sha256Hasher()
    return LegacyAwareHasher(
        Argon2Hasher(
            time_cost=config.time_cost,
            memory_cost_kib=config.memory_cost_kib,
            parallelism=config.parallelism,
        )
    )
