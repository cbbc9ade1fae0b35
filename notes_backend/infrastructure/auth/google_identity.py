# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Verification of Google ID tokens against Google's published key set."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from threading import Lock
from typing import Any

import httpx
import jwt

from notes_backend.domain.users.entities import FederatedIdentity
from notes_backend.domain.users.exceptions import InvalidTokenError
from notes_backend.domain.users.policies import normalize_email
from notes_backend.domain.users.repositories import IdentityVerifier
from notes_backend.shared.logging import logger

GOOGLE_ISSUERS = frozenset({"accounts.google.com", "https://accounts.google.com"})

JwksFetcher = Callable[[str], Mapping[str, Any]]


def http_jwks_fetcher(timeout: float) -> JwksFetcher:
    def _fetch(url: str) -> Mapping[str, Any]:
        response = httpx.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()

    return _fetch


def _find_key(keys: jwt.PyJWKSet, kid: str) -> jwt.PyJWK | None:
    try:
        return keys[kid]
    except KeyError:
        return None


class GoogleIdentityVerifier(IdentityVerifier):
    """Validates signature, issuer, audience and expiry of a Google ID token."""

    ALGORITHMS = ("RS256",)

    def __init__(
        self,
        *,
        client_id: str | None,
        certs_url: str,
        timeout: float = 5.0,
        jwks_fetcher: JwksFetcher | None = None,
        cache_ttl: float = 3600.0,
        min_refresh_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client_id = client_id
        self._certs_url = certs_url
        self._fetch = jwks_fetcher or http_jwks_fetcher(timeout)
        self._cache_ttl = cache_ttl
        self._min_refresh_interval = min_refresh_interval
        self._clock = clock
        self._keys: jwt.PyJWKSet | None = None
        self._fetched_at = 0.0
        self._lock = Lock()
        self._refresh_lock = Lock()

    def verify(self, token: str) -> FederatedIdentity:
        if not self._client_id:
            logger.error("google_identity: GOOGLE_CLIENT_ID is not configured")
            raise InvalidTokenError()
        if not token:
            raise InvalidTokenError()

        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        key = self._signing_key(header.get("kid"))
        try:
            claims = jwt.decode(
                token,
                key.key,
                algorithms=list(self.ALGORITHMS),
                audience=self._client_id,
                options={"require": ["exp", "iat", "iss", "aud", "sub"]},
            )
        except jwt.InvalidTokenError as exc:
            logger.info(f"google_identity: token rejected: {type(exc).__name__}")
            raise InvalidTokenError() from exc

        return self._identity_from_claims(claims)

    def _identity_from_claims(self, claims: Mapping[str, Any]) -> FederatedIdentity:
        if claims.get("iss") not in GOOGLE_ISSUERS:
            logger.info(f"google_identity: unexpected issuer {claims.get('iss')!r}")
            raise InvalidTokenError()
        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise InvalidTokenError()
        if claims.get("email_verified") not in (True, "true"):
            logger.info("google_identity: email not verified by provider")
            raise InvalidTokenError()
        return FederatedIdentity(
            subject=str(claims["sub"]),
            email=normalize_email(email),
            first_name=str(claims.get("given_name") or ""),
            last_name=str(claims.get("family_name") or ""),
        )

    def _signing_key(self, kid: str | None) -> jwt.PyJWK:
        if not kid:
            raise InvalidTokenError()
        key, refresh = self._cached_key(kid)
        if refresh:
            key = self._refresh(kid)
        if key is None:
            logger.info(f"google_identity: unknown signing key kid={kid}")
            raise InvalidTokenError()
        return key

    def _cached_key(self, kid: str) -> tuple[jwt.PyJWK | None, bool]:
        """Return the cached key for ``kid`` and whether a fetch is needed."""
        now = self._clock()
        with self._lock:
            keys, fetched_at = self._keys, self._fetched_at
        if keys is None or now - fetched_at > self._cache_ttl:
            return None, True
        key = _find_key(keys, kid)
        if key is not None:
            return key, False
        # Google rotates keys; an unknown kid may force one refetch per interval
        return None, now - fetched_at >= self._min_refresh_interval

    def _refresh(self, kid: str) -> jwt.PyJWK | None:
        with self._refresh_lock:
            with self._lock:
                keys, fetched_at = self._keys, self._fetched_at
            if keys is not None and self._clock() - fetched_at < self._min_refresh_interval:
                # refreshed by another request while this one waited
                return _find_key(keys, kid)
            keys = self._load_keys()
            with self._lock:
                self._keys = keys
                self._fetched_at = self._clock()
        return _find_key(keys, kid)

    def _load_keys(self) -> jwt.PyJWKSet:
        try:
            document = self._fetch(self._certs_url)
            return jwt.PyJWKSet.from_dict(dict(document))
        except httpx.HTTPError as exc:
            # timeouts included
            logger.warning(f"google_identity: key set fetch failed: {type(exc).__name__}")
            raise InvalidTokenError() from exc
        except (jwt.PyJWKSetError, jwt.PyJWKError, ValueError) as exc:
            logger.warning(f"google_identity: malformed key set: {type(exc).__name__}")
            raise InvalidTokenError() from exc


__all__ = ["GOOGLE_ISSUERS", "GoogleIdentityVerifier", "http_jwks_fetcher"]
