"""Authentication session for the StudyHub backend.

Provides login, register, logout and identity lookup on top of
``StudyHubAPIClient`` and keeps track of the signed-in user.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from .base_client import StudyHubAPIClient
from .models import ApiError, ApiResult, AuthResponse, ErrorKind, User, unwrap_envelope

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/api/v1/auth/login"
REGISTER_ENDPOINT = "/api/v1/auth/register"
ME_ENDPOINT = "/api/v1/auth/me"


class AuthSession:
    """Tracks the authenticated user for one API client.

    Args:
        client: API client whose token this session manages
    """

    def __init__(self, client: StudyHubAPIClient):
        self.client = client
        self.user: Optional[User] = None
        self.loading = False
        self.initialized = False

    @property
    def current_user(self) -> Optional[User]:
        return self.user

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "admin"

    async def me(self) -> ApiResult[User]:
        """Look up the identity behind the current token."""
        result = await self.client.get(ME_ENDPOINT)
        if result.error is not None:
            return ApiResult.failure(result.error)

        try:
            return ApiResult.success(User.model_validate(unwrap_envelope(result.data)))
        except ValidationError as e:
            logger.debug(f"Unexpected identity payload: {e}")
            return ApiResult.failure(
                ApiError(
                    kind=ErrorKind.PARSE,
                    message="Invalid user data in response",
                    status=500,
                )
            )

    async def initialize(self) -> None:
        """Restore the user from a persisted token, if any."""
        if self.client.get_token() is None:
            self.initialized = True
            return

        self.loading = True
        try:
            result = await self.me()
            if result.error is not None:
                # Network trouble keeps the token; a rejected one is gone for good
                if result.error.kind == ErrorKind.UNAUTHORIZED:
                    logger.info("Stored access token rejected, clearing it")
                    self.client.set_token(None)
                self.user = None
            else:
                self.user = result.data
        finally:
            self.loading = False
            self.initialized = True

    async def _authenticate(
        self, endpoint: str, email: str, password: str, action: str
    ) -> ApiResult[AuthResponse]:
        self.loading = True
        try:
            result = await self.client.post(
                endpoint, {"email": email, "password": password}
            )
            if result.error is not None:
                return ApiResult.failure(result.error)

            try:
                auth = AuthResponse.model_validate(unwrap_envelope(result.data))
            except ValidationError as e:
                logger.debug(f"Unexpected {action} payload: {e}")
                return ApiResult.failure(
                    ApiError(kind=ErrorKind.PARSE, message=f"{action} failed", status=500)
                )

            self.client.set_token(auth.access_token)
            self.user = auth.user
            logger.debug(f"{action} succeeded for {auth.user.email}")
            return ApiResult.success(auth)
        finally:
            self.loading = False

    async def login(self, email: str, password: str) -> ApiResult[AuthResponse]:
        """Authenticate and store the returned access token."""
        return await self._authenticate(LOGIN_ENDPOINT, email, password, "Login")

    async def register(self, email: str, password: str) -> ApiResult[AuthResponse]:
        """Create an account and store the returned access token."""
        return await self._authenticate(
            REGISTER_ENDPOINT, email, password, "Registration"
        )

    def logout(self) -> None:
        """Forget the token and the user."""
        self.client.set_token(None)
        self.user = None
        self.loading = False
        self.initialized = True
