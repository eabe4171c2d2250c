"""
Cache of raw tokens that already passed signature verification.
"""

import hashlib

from shared.errors import CachePersistenceError
from shared.logging import get_logger
from .store import KeyValueStore


def token_fingerprint(token: str) -> str:
    """Short, non-reversible identifier for log lines."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


class ValidationCache:
    """Remembers which exact token strings have matched a signing key.

    An entry only spares the JWKS fetch and signature check; claims are
    re-verified on every call, so entries carry no TTL.
    """

    def __init__(self, store: KeyValueStore, key_prefix: str = ""):
        self.store = store
        self.key_prefix = key_prefix
        self.logger = get_logger("auth.cache")

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    async def contains(self, token: str) -> bool:
        """Point lookup. Any failure, including a missing key, is a miss."""
        try:
            async with self.store.transaction() as tx:
                await tx.get(self._key(token))
            return True
        except KeyError:
            return False
        except Exception as e:
            self.logger.warning(
                "Validation cache read failed, treating as miss",
                token=token_fingerprint(token),
                error=str(e)
            )
            return False

    async def remember(self, token: str) -> None:
        """Record ``token`` as signature-verified."""
        try:
            async with self.store.transaction(write=True) as tx:
                await tx.set(self._key(token), token)
        except Exception as e:
            self.logger.error(
                "Validation cache write failed",
                token=token_fingerprint(token),
                error=str(e)
            )
            raise CachePersistenceError(details={"error": str(e)}) from e

        self.logger.debug("Token cached", token=token_fingerprint(token))

    async def forget(self, token: str) -> None:
        """Drop ``token`` from the cache; absent tokens are ignored."""
        try:
            async with self.store.transaction(write=True) as tx:
                await tx.delete(self._key(token))
        except Exception as e:
            self.logger.error(
                "Validation cache delete failed",
                token=token_fingerprint(token),
                error=str(e)
            )
            raise CachePersistenceError("Validation cache delete failed", {"error": str(e)}) from e

        self.logger.debug("Token evicted", token=token_fingerprint(token))
