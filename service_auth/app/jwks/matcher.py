"""
Match a raw token against every key of a JWKS.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from shared.errors import AccessLayerException, KeySetFetchFailed, NoMatchingKey
from shared.logging import get_logger
from .client import KeySetFetcher
from .signature import SignatureVerifier


@dataclass
class KeyMatchResult:
    """Outcome of testing one token against a whole key set."""

    matches: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.matches > 0


class SignatureMatcher:
    """Signature check of a token against a fetched key set."""

    def __init__(self, fetcher: KeySetFetcher, verifier: SignatureVerifier):
        self.fetcher = fetcher
        self.verifier = verifier
        self.logger = get_logger("auth.matcher")

    def match_any_key(self, raw_token: str, key_set: List[Dict[str, Any]]) -> KeyMatchResult:
        """Try every key in order; a single success is enough to match.

        Per-key failures are collected, never raised. All keys are tried even
        after a match.
        """
        result = KeyMatchResult()
        for key in key_set:
            try:
                self.verifier.verify(raw_token, key)
            except Exception as e:
                result.errors.append(str(e))
            else:
                result.matches += 1
        return result

    async def verify(self, raw_token: str, jwks_url: str) -> KeyMatchResult:
        """Fetch the key set at ``jwks_url`` and require at least one match.

        Raises:
            KeySetFetchFailed: the key set could not be retrieved.
            NoMatchingKey: no key verified the token.
        """
        try:
            key_set = await self.fetcher.fetch(jwks_url)
        except AccessLayerException:
            raise
        except Exception as e:
            raise KeySetFetchFailed(jwks_url, str(e)) from e

        result = self.match_any_key(raw_token, key_set)

        if not result.matched:
            self.logger.warning(
                "No signing key matched token",
                keys_count=len(key_set),
                errors=result.errors
            )
            raise NoMatchingKey(result.errors)

        self.logger.debug("Token signature matched", matches=result.matches, keys_count=len(key_set))
        return result
