"""Sign-in session management.

The identity provider handshake is opaque: a provider returns a user id plus
optional name and email, or raises. The resulting profile is kept as JSON in
the secret store under one fixed account name, replaced on every sign-in and
removed on sign-out.
"""

from __future__ import annotations

import asyncio

from pydantic import ValidationError as PydanticValidationError

from homecrew.core.exceptions import AuthenticationError
from homecrew.core.logging import get_logger, sanitize_error
from homecrew.core.protocols import (
    IdentityCredential,
    IdentityProviderProtocol,
    SecretStoreProtocol,
)
from homecrew.models.user import UserProfile

logger = get_logger(__name__)


class StaticIdentityProvider:
    """Provider for a credential the platform has already verified."""

    def __init__(self, credential: IdentityCredential) -> None:
        self._credential = credential

    async def sign_in(self) -> IdentityCredential:
        return self._credential


class AuthService:
    """Tracks the signed-in user and persists the profile between runs."""

    def __init__(self, secrets: SecretStoreProtocol, account_name: str) -> None:
        self._secrets = secrets
        self.account_name = account_name
        self.current_user: UserProfile | None = None

    async def sign_in(self, provider: IdentityProviderProtocol) -> UserProfile:
        """Run the provider sign-in and store the resulting profile.

        Raises:
            AuthenticationError: If the provider fails or returns no user id
        """
        try:
            credential = await provider.sign_in()
        except AuthenticationError:
            raise
        except Exception as e:
            logger.warning(f"Sign in failed: {sanitize_error(e)}")
            raise AuthenticationError("Sign in failed") from e

        try:
            profile = UserProfile(
                user_id=credential.user_id,
                full_name=credential.full_name,
                email=credential.email,
            )
        except PydanticValidationError as e:
            raise AuthenticationError("Identity provider returned no user id") from e

        await asyncio.to_thread(
            self._secrets.save, self.account_name, profile.model_dump_json().encode("utf-8")
        )
        self.current_user = profile
        logger.info("User signed in")
        return profile

    def restore(self) -> UserProfile | None:
        """Load the stored profile, if any. A corrupt entry is discarded.

        Reads the secret store synchronously; async callers run it in a thread.
        """
        data = self._secrets.load(self.account_name)
        if data is None:
            self.current_user = None
            return None
        try:
            profile = UserProfile.model_validate_json(data)
        except PydanticValidationError:
            logger.warning("Discarding unreadable stored user profile")
            self._secrets.delete(self.account_name)
            self.current_user = None
            return None
        self.current_user = profile
        return profile

    def sign_out(self) -> None:
        self._secrets.delete(self.account_name)
        self.current_user = None
        logger.info("User signed out")

    def require_user(self) -> UserProfile:
        if self.current_user is None:
            raise AuthenticationError()
        return self.current_user
