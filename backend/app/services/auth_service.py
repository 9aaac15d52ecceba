"""
Portcullis Backend - Auth Service
=================================

What:  Password login and the Google OAuth 2.0 authorization-code flow.
How:   httpx.AsyncClient for the provider round-trips; the userinfo GET is
       retried with tenacity on transport errors.
Who:   Called by the /auth routes.

OAuth Flow:
    GET /auth/google           → 302 to build_auth_url()
    Google redirects back      → GET /auth/google/callback?code=...
    exchange_code(code)        → POST oauth2.googleapis.com/token
                                 {access_token, id_token, ...}
    fetch_user(tokens)         → GET googleapis.com/oauth2/v1/userinfo
                                 {id, email, name, picture}
    login_or_register(profile) → find by email; create, or link google_id
                                 when the account has none yet
                               → sign a bearer token

Any provider failure is raised as OAuthError (502, non-operational), so
it is logged with its cause but the client only sees
"Failed to fetch Google user".
"""

import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.constants import INVALID_CREDENTIALS
from app.exceptions import OAuthError, UnauthorizedError
from app.models.user import User
from app.schemas.auth import AuthResponse, AuthUser, GoogleUser
from app.schemas.user import CreateUser
from app.security.tokens import sign_token
from app.services.user_service import UserService, user_service
from app.validation import safe_parse

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v1/userinfo"
GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/userinfo.email",
)


def issue_token(user: User) -> AuthResponse:
    return AuthResponse(
        token=sign_token(user.id, user.email),
        user=AuthUser.model_validate(user),
    )


class GoogleOAuthService:
    """
    Google sign-in.

    Args:
        users:     UserService used to find, create and link accounts
        transport: Optional httpx transport (tests pass httpx.MockTransport)
        timeout:   Per-request timeout in seconds
    """

    def __init__(
        self,
        users: UserService = user_service,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.users = users
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def build_auth_url(self) -> str:
        params = {
            "redirect_uri": settings.google_redirect_uri,
            "client_id": settings.google_client_id or "",
            "access_type": "offline",
            "response_type": "code",
            "prompt": "consent",
            "scope": " ".join(GOOGLE_SCOPES),
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Trade an authorization code for tokens.

        Raises:
            OAuthError: transport failure or a non-2xx answer from Google
        """
        form = {
            "code": code,
            "client_id": settings.google_client_id or "",
            "client_secret": settings.google_client_secret or "",
            "redirect_uri": settings.google_redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with self._client() as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=form)
        except httpx.HTTPError as e:
            logger.error("Google token endpoint unreachable: %s", e)
            raise OAuthError() from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error:
            logger.error(
                "Google token exchange failed (%d): %s",
                response.status_code,
                payload.get("error_description") or payload.get("error") or response.text,
            )
            raise OAuthError()
        return payload

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_userinfo(self, access_token: str, id_token: Optional[str]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {id_token}"} if id_token else {}
        async with self._client() as client:
            return await client.get(
                GOOGLE_USERINFO_URL,
                params={"alt": "json", "access_token": access_token},
                headers=headers,
            )

    async def fetch_user(self, tokens: Dict[str, Any]) -> GoogleUser:
        """
        Profile for the tokens returned by exchange_code().

        Raises:
            OAuthError: transport failure after retries, non-2xx answer, or
                a profile without `id` / `email`
        """
        access_token = tokens.get("access_token")
        if not access_token:
            logger.error("Google token response carried no access_token")
            raise OAuthError()

        try:
            response = await self._get_userinfo(access_token, tokens.get("id_token"))
        except httpx.HTTPError as e:
            logger.error("Google userinfo endpoint unreachable: %s", e)
            raise OAuthError() from e

        if response.is_error:
            logger.error("Google userinfo failed (%d): %s", response.status_code, response.text)
            raise OAuthError()

        try:
            body = response.json()
        except ValueError as e:
            raise OAuthError() from e

        result = safe_parse(GoogleUser, body)
        if not result.success:
            logger.error("Unexpected Google userinfo payload: %s", result.issues)
            raise OAuthError()
        return result.data

    async def get_google_user(self, code: str) -> GoogleUser:
        tokens = await self.exchange_code(code)
        return await self.fetch_user(tokens)

    @staticmethod
    def account_from_profile(profile: GoogleUser) -> CreateUser:
        """
        Validate a Google profile against the same rules as POST /users.

        A name or picture the schema rejects is dropped so sign-in still
        succeeds; an unusable email raises OAuthError.
        """
        candidate = {"email": profile.email, "name": profile.name, "avatar": profile.picture}
        result = safe_parse(CreateUser, candidate)
        if result.success:
            return result.data

        rejected = {issue.path[0] for issue in result.issues if issue.path}
        if "email" in rejected:
            logger.error("Google profile %s has an unusable email: %s", profile.id, result.issues)
            raise OAuthError()

        logger.warning("Dropping Google profile fields %s for %s", sorted(rejected), profile.id)
        retry = safe_parse(
            CreateUser, {k: v for k, v in candidate.items() if k not in rejected}
        )
        if not retry.success:
            logger.error("Google profile %s rejected: %s", profile.id, retry.issues)
            raise OAuthError()
        return retry.data

    async def login_or_register(
        self, db: AsyncSession, profile: GoogleUser
    ) -> Tuple[User, AuthResponse]:
        """
        Find-or-create the account for a Google profile and sign a token.

        An existing account with no google_id gets linked (google_id and
        avatar are set); an already-linked account is left as is.
        """
        account = self.account_from_profile(profile)
        user = await self.users.get_by_email(db, account.email)

        if user is None:
            user = await self.users.create(db, account, google_id=profile.id)
            logger.info("Registered user id=%s via Google", user.id)
        elif not user.google_id:
            user = await self.users.link_google(db, user, profile.id, account.avatar)

        return user, issue_token(user)

    async def login_with_password(self, db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Raises:
            UnauthorizedError: unknown email, wrong password, or an account
                with no password set
        """
        user = await self.users.verify_credentials(db, email, password)
        if user is None:
            logger.info("Failed password login for %s", email)
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return issue_token(user)


google_oauth_service = GoogleOAuthService()
