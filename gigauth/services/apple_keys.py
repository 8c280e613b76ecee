"""Cache of Apple's Sign in with Apple signing keys."""

import json
import logging
import threading
import time

import requests
from jwt import PyJWTError
from jwt.algorithms import RSAAlgorithm

log = logging.getLogger(__name__)

DEFAULT_APPLE_KEYS_URL = "https://appleid.apple.com/auth/keys"
DEFAULT_KEYS_TTL_SECONDS = 86400


class AppleKeyFetchError(Exception):
    """Apple's key set could not be downloaded or parsed."""


class AppleKeyNotFoundError(Exception):
    """No Apple key matches the requested key id, even after a refetch."""

    def __init__(self, kid=None):
        super().__init__("Apple public key not found")
        self.kid = kid


class AppleKeyCache:
    """Process-local ``kid -> RSA public key`` map.

    A refresh builds a new dict and swaps the reference, so readers never see
    a half-built map and never take the lock. Two threads missing the same
    ``kid`` may both refetch; the last swap wins and both results are valid.

    ``ttl_seconds`` bounds how long a fetched key set is trusted. A stale hit
    is refetched once before use. ``0`` keeps keys until a miss forces a fetch.
    """

    def __init__(self, keys_url=DEFAULT_APPLE_KEYS_URL, timeout=5,
                 ttl_seconds=DEFAULT_KEYS_TTL_SECONDS, clock=None):
        self.keys_url = keys_url
        self.timeout = timeout
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._keys = {}
        self._fetched_at = None
        self._lock = threading.Lock()

    def _is_stale(self):
        if self._fetched_at is None:
            return True
        if not self.ttl_seconds:
            return False
        return self._clock() - self._fetched_at >= self.ttl_seconds

    def get_key(self, kid):
        """Return the public key for ``kid``, refetching at most once."""
        keys = self._keys
        if kid in keys and not self._is_stale():
            return keys[kid]

        log.info(f"Refetching Apple public keys for kid {kid}")
        keys = self.refresh()
        if kid not in keys:
            raise AppleKeyNotFoundError(kid)
        return keys[kid]

    def refresh(self):
        """Download the key set and replace the cached map. Returns the new map."""
        try:
            response = requests.get(self.keys_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise AppleKeyFetchError(f"Failed to fetch Apple public keys: {e}") from e

        if response.status_code != 200:
            raise AppleKeyFetchError(
                f"Apple keys endpoint returned status {response.status_code}"
            )

        try:
            payload = response.json()
            keys = {}
            for jwk in payload.get("keys", []):
                if jwk.get("kty") != "RSA" or not jwk.get("kid"):
                    continue
                keys[jwk["kid"]] = RSAAlgorithm.from_jwk(json.dumps(jwk))
        except (ValueError, KeyError, TypeError, AttributeError, PyJWTError) as e:
            raise AppleKeyFetchError(f"Failed to parse Apple public keys: {e}") from e

        with self._lock:
            self._keys = keys
            self._fetched_at = self._clock()
        log.info(f"Loaded {len(keys)} Apple public keys")
        return keys
