"""Session lifecycle: token issuance, refresh-token bookkeeping and cookies.

Access tokens are stateless and expire on their own. Refresh tokens are
signed too, but a valid signature is only half the check: the token cache
holds the single refresh token each user may currently present, so a token
that was overwritten by a later login or deleted on logout is rejected even
while its signature is still good.
"""
import jwt
from dataclasses import dataclass
from typing import List, Optional
from storefront.core.config import Settings, settings
from storefront.core.errors import DuplicateUser, InvalidCredentials, InvalidToken, MissingToken, RevokedToken
from storefront.core.logging import get_logger
from storefront.db.models import Role, User
from storefront.schemas import UserRead
from storefront.security.utils import ACCESS, REFRESH, create_access_token, create_refresh_token, decode_token, dummy_verify
from storefront.store.token_cache import TokenCache, refresh_key
from storefront.store.users import UserRepository

logger = get_logger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

@dataclass(frozen=True)
class CookieDirective:
    """A cookie the transport layer should set; ``max_age=0`` with an empty value clears it."""
    name: str
    value: str
    max_age: int

@dataclass(frozen=True)
class Session:
    tokens: TokenPair
    user: UserRead

class SessionManager:
    def __init__(self, users: UserRepository, tokens: TokenCache, cfg: Settings = settings):
        self.users = users
        self.tokens = tokens
        self.cfg = cfg

    def issue_token_pair(self, user_id) -> TokenPair:
        access, _ = create_access_token(str(user_id), self.cfg)
        refresh, _ = create_refresh_token(str(user_id), self.cfg)
        return TokenPair(access_token=access, refresh_token=refresh)

    def persist_session(self, user_id, refresh_token: str) -> None:
        # overwrite: any refresh token issued earlier for this user stops verifying
        self.tokens.set(refresh_key(user_id), refresh_token, self.cfg.REFRESH_TOKEN_EXPIRES_SECONDS)

    def _open_session(self, user: User) -> Session:
        pair = self.issue_token_pair(user.id)
        self.persist_session(user.id, pair.refresh_token)
        return Session(tokens=pair, user=UserRead.model_validate(user))

    def authenticate(self, email: str, password: str) -> Session:
        user = self.users.find_by_email(email)
        if user is None:
            dummy_verify()
        if user is None or not self.users.verify_password(user, password):
            logger.warning("login_rejected", reason="invalid_credentials")
            raise InvalidCredentials()
        logger.info("login_succeeded", user_id=user.id)
        return self._open_session(user)

    def register(self, name: str, email: str, password: str, role: Role = Role.customer) -> Session:
        if self.users.find_by_email(email) is not None:
            raise DuplicateUser()
        user = self.users.create({"name": name, "email": email, "password": password, "role": role})
        logger.info("user_registered", user_id=user.id, role=user.role.value)
        return self._open_session(user)

    def decode_refresh_token(self, token: Optional[str]) -> str:
        """Signature, expiry and token-class check only. Returns the user id claim."""
        if not token:
            raise MissingToken("No refresh token provided")
        try:
            claims = decode_token(token, REFRESH, self.cfg)
        except jwt.InvalidTokenError as exc:
            raise InvalidToken("Invalid refresh token") from exc
        return claims["sub"]

    def check_stored_token(self, user_id: str, token: str) -> None:
        """Store check: the presented token must be the one currently on record."""
        stored = self.tokens.get(refresh_key(user_id))
        if stored is None or stored != token:
            logger.warning("refresh_token_revoked", user_id=user_id, record_present=stored is not None)
            raise RevokedToken()

    def verify_access_token(self, token: Optional[str]) -> int:
        if not token:
            raise MissingToken("Unauthorized - No access token provided")
        try:
            claims = decode_token(token, ACCESS, self.cfg)
            return int(claims["sub"])
        except (jwt.InvalidTokenError, ValueError) as exc:
            raise InvalidToken("Unauthorized - Invalid access token") from exc

    def refresh(self, token: Optional[str]) -> str:
        user_id = self.decode_refresh_token(token)
        self.check_stored_token(user_id, token)
        access, _ = create_access_token(user_id, self.cfg)
        return access

    def revoke(self, token: Optional[str]) -> None:
        if not token:
            return
        try:
            user_id = self.decode_refresh_token(token)
        except InvalidToken:
            logger.info("logout_with_unverifiable_token")
            return
        self.tokens.delete(refresh_key(user_id))
        logger.info("session_revoked", user_id=user_id)

    def access_cookie(self, access_token: str) -> CookieDirective:
        return CookieDirective(ACCESS_COOKIE, access_token, self.cfg.ACCESS_TOKEN_EXPIRES_SECONDS)

    def session_cookies(self, pair: TokenPair) -> List[CookieDirective]:
        return [
            self.access_cookie(pair.access_token),
            CookieDirective(REFRESH_COOKIE, pair.refresh_token, self.cfg.REFRESH_TOKEN_EXPIRES_SECONDS),
        ]

    def cleared_cookies(self) -> List[CookieDirective]:
        return [CookieDirective(ACCESS_COOKIE, "", 0), CookieDirective(REFRESH_COOKIE, "", 0)]
