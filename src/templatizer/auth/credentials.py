"""GitHub App credential lifecycle and webhook signature checks.

Two credentials are involved:

* the *signed assertion*, an RS256 JWT issued by the app itself and only
  used to request installation tokens;
* the *access token*, scoped to one installation and used for every
  other API call.

Both are cached in memory with their absolute expiry and re-minted once
``now >= expiry``. Minting is single-flight: concurrent callers wait on
the same lock and reuse the fresh value.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Callable

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from pydantic import ValidationError

from templatizer.entities.events import AccessTokenResult
from templatizer.exceptions import CredentialError
from templatizer.secrets.exceptions import SecretError

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

    from templatizer.github.client import GitHubClient
    from templatizer.secrets.provider import SecretProvider

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha1="
DEFAULT_ASSERTION_LIFETIME = timedelta(minutes=9)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class Credential:
    """A credential value and the instant it stops being usable."""

    value: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


def compute_signature(secret: str, body: bytes) -> str:
    """``sha1=<hex>`` HMAC-SHA1 of the raw body, keyed by the trimmed secret."""
    digest = hmac.new(secret.strip().encode("utf-8"), body, hashlib.sha1).hexdigest()
    return SIGNATURE_PREFIX + digest


def load_private_key(material: str) -> PrivateKeyTypes:
    """Decode PEM key material into a private key.

    The ``-----BEGIN ...-----``/``-----END ...-----`` framing is dropped and
    the base64 body decoded as DER, so both PKCS#1 and PKCS#8 keys load,
    as does a bare base64 body without framing.

    Raises:
        CredentialError: If the material is empty or not a private key.
    """
    lines = (line.strip() for line in material.strip().splitlines())
    body = "".join(line for line in lines if line and not line.startswith("-----"))
    if not body:
        raise CredentialError("GitHub App private key is empty")

    try:
        der = base64.b64decode(body, validate=True)
        return serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CredentialError("GitHub App private key is malformed") from e


class CredentialManager:
    """Mints and caches GitHub App credentials.

    One instance is shared by every delivery handled by the process. The
    access token cache is keyed by installation id, so tokens never leak
    between installations.
    """

    def __init__(
        self,
        app_id: str,
        secrets: SecretProvider,
        github: GitHubClient,
        private_key_secret: str = "templatizer-github-key",
        webhook_secret_name: str = "templatizer-webhook-secret",
        assertion_lifetime: timedelta = DEFAULT_ASSERTION_LIFETIME,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the credential manager.

        Args:
            app_id: GitHub App id, used as the assertion issuer.
            secrets: Provider holding the app key and webhook secret.
            github: API client used for the token exchange.
            private_key_secret: Secret name of the PEM private key.
            webhook_secret_name: Secret name of the webhook HMAC key.
            assertion_lifetime: Validity window of a minted assertion.
            clock: Returns the current time as an aware UTC datetime.
        """
        self._app_id = app_id
        self._secrets = secrets
        self._github = github
        self._private_key_secret = private_key_secret
        self._webhook_secret_name = webhook_secret_name
        self._assertion_lifetime = assertion_lifetime
        self._clock = clock

        self._assertion: Credential | None = None
        self._tokens: dict[int, Credential] = {}
        self._assertion_lock = asyncio.Lock()
        self._token_locks: dict[int, asyncio.Lock] = {}

    async def _read_secret(self, name: str) -> str:
        try:
            return await asyncio.to_thread(self._secrets.get_secret, name)
        except SecretError as e:
            raise CredentialError(f"Secret {name!r} is unavailable: {e}") from e

    async def get_signed_assertion(self) -> str:
        """Return a valid app JWT, minting a new one when needed.

        Raises:
            CredentialError: If the private key is absent or malformed.
        """
        async with self._assertion_lock:
            now = self._clock()
            if self._assertion is not None and self._assertion.is_valid(now):
                return self._assertion.value

            if not self._app_id:
                raise CredentialError("GitHub App id is not configured")

            material = await self._read_secret(self._private_key_secret)
            key = load_private_key(material)
            expires_at = now + self._assertion_lifetime
            claims = {
                "iss": self._app_id,
                "iat": int(now.timestamp()),
                "exp": int(expires_at.timestamp()),
            }
            try:
                value = jwt.encode(claims, key, algorithm="RS256")
            except (TypeError, ValueError, jwt.PyJWTError) as e:
                raise CredentialError("Failed to sign GitHub App assertion") from e

            self._assertion = Credential(value=value, expires_at=expires_at)
            logger.debug("Minted app assertion valid until %s", expires_at.isoformat())
            return value

    async def get_access_token(self, installation_id: int) -> str:
        """Return a valid access token for an installation.

        Raises:
            CredentialError: If the assertion cannot be minted or GitHub
                rejects the exchange.
            httpx.HTTPError: If the exchange request itself fails.
        """
        lock = self._token_locks.setdefault(installation_id, asyncio.Lock())
        async with lock:
            cached = self._tokens.get(installation_id)
            if cached is not None and cached.is_valid(self._clock()):
                return cached.value

            assertion = await self.get_signed_assertion()
            response = await self._github.create_installation_token(installation_id, assertion)
            if not response.is_success:
                logger.error(
                    "Request for access token failed for installation %s: HTTP %d",
                    installation_id,
                    response.status_code,
                )
                raise CredentialError(
                    f"Access token exchange failed with HTTP {response.status_code}",
                    status_code=response.status_code,
                )

            try:
                result = AccessTokenResult.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                raise CredentialError("Access token response could not be parsed") from e
            if not result.token:
                raise CredentialError("Access token response did not contain a token")

            expires_at = result.expires_at
            if expires_at is None:
                raise CredentialError("Access token response did not contain an expiry")
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=UTC)
            credential = Credential(value=result.token, expires_at=expires_at)
            if not credential.is_valid(self._clock()):
                raise CredentialError("Access token returned by GitHub is already expired")

            self._tokens[installation_id] = credential
            logger.info("Obtained access token for installation %s (expires %s)", installation_id, expires_at)
            return result.token

    async def validate_signature(self, header_value: str | None, raw_body: bytes | str) -> bool:
        """Check an ``X-Hub-Signature`` header against the raw request body.

        A missing header never matches.

        Raises:
            CredentialError: If the webhook secret cannot be read.
        """
        if not header_value:
            return False

        body = raw_body.encode("utf-8") if isinstance(raw_body, str) else raw_body
        secret = await self._read_secret(self._webhook_secret_name)
        expected = compute_signature(secret, body)
        return hmac.compare_digest(expected.encode("utf-8"), header_value.encode("utf-8"))

    def invalidate(self) -> None:
        """Drop every cached credential."""
        self._assertion = None
        self._tokens.clear()
