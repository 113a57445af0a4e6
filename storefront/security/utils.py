from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
import jwt, uuid
from typing import Tuple
from storefront.core.config import Settings, settings

ACCESS = 'access'
REFRESH = 'refresh'

pwd_ctx = CryptContext(schemes=['bcrypt'], deprecated='auto', bcrypt__rounds=settings.BCRYPT_ROUNDS)

def hash_password(p: str) -> str: return pwd_ctx.hash(p)

def verify_password(p: str, h: str) -> bool: return pwd_ctx.verify(p, h)

# same bcrypt cost as a real check, for lookups that found no user
def dummy_verify() -> None: pwd_ctx.dummy_verify()

def now_utc() -> datetime: return datetime.now(timezone.utc)

def generate_jti() -> str: return uuid.uuid4().hex

def _encode(sub: str, token_type: str, secret: str, lifetime: timedelta, cfg: Settings) -> Tuple[str, datetime]:
    iat = now_utc()
    exp = iat + lifetime
    # jti keeps two tokens minted for the same user in the same second distinct
    payload = {'sub': sub, 'type': token_type, 'jti': generate_jti(), 'iat': iat, 'exp': exp}
    return jwt.encode(payload, secret, algorithm=cfg.JWT_ALGORITHM), exp

def create_access_token(sub: str, cfg: Settings = settings) -> Tuple[str, datetime]:
    return _encode(sub, ACCESS, cfg.ACCESS_TOKEN_SECRET, timedelta(seconds=cfg.ACCESS_TOKEN_EXPIRES_SECONDS), cfg)

def create_refresh_token(sub: str, cfg: Settings = settings) -> Tuple[str, datetime]:
    return _encode(sub, REFRESH, cfg.REFRESH_TOKEN_SECRET, timedelta(seconds=cfg.REFRESH_TOKEN_EXPIRES_SECONDS), cfg)

def decode_token(token: str, token_type: str, cfg: Settings = settings) -> dict:
    """Check signature, expiry and token class; raises ``jwt.InvalidTokenError``."""
    secret = cfg.ACCESS_TOKEN_SECRET if token_type == ACCESS else cfg.REFRESH_TOKEN_SECRET
    claims = jwt.decode(token, secret, algorithms=[cfg.JWT_ALGORITHM], options={'require': ['exp', 'sub']})
    if claims.get('type') != token_type:
        raise jwt.InvalidTokenError(f"expected {token_type} token")
    return claims
