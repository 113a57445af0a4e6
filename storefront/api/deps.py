from typing import Optional
from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from storefront.core.errors import Forbidden, InvalidToken, MissingToken, StoreUnavailable
from storefront.core.resources import Resources
from storefront.db.models import Role, User
from storefront.services.catalog import CatalogCache
from storefront.services.sessions import ACCESS_COOKIE, SessionManager
from storefront.services.storage import ImageStorage
from storefront.store.products import ProductRepository
from storefront.store.token_cache import TokenCache
from storefront.store.users import UserRepository

security = HTTPBearer(auto_error=False)

def get_resources(request: Request) -> Resources:
    resources = getattr(request.app.state, 'resources', None)
    if resources is None: raise StoreUnavailable()
    return resources

def get_db(resources: Resources = Depends(get_resources)):
    db = resources.session_factory()
    try: yield db
    finally: db.close()

def get_session_manager(db: Session = Depends(get_db), resources: Resources = Depends(get_resources)) -> SessionManager:
    return SessionManager(UserRepository(db), TokenCache(resources.redis))

def get_products(db: Session = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db)

def get_catalog_cache(products: ProductRepository = Depends(get_products), resources: Resources = Depends(get_resources)) -> CatalogCache:
    return CatalogCache(resources.redis, products)

def get_image_storage(resources: Resources = Depends(get_resources)) -> ImageStorage:
    return resources.images

def presented_access_token(
    access_cookie: Optional[str] = Cookie(default=None, alias=ACCESS_COOKIE),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    if access_cookie: return access_cookie
    return creds.credentials if creds else None

def get_current_user(token: Optional[str] = Depends(presented_access_token), sessions: SessionManager = Depends(get_session_manager)) -> User:
    user = sessions.users.find_by_id(sessions.verify_access_token(token))
    if not user: raise InvalidToken('Unauthorized - User not found')
    return user

def get_optional_user(token: Optional[str] = Depends(presented_access_token), sessions: SessionManager = Depends(get_session_manager)) -> Optional[User]:
    try:
        return get_current_user(token, sessions)
    except (MissingToken, InvalidToken):
        return None

def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.admin:
        raise Forbidden('Forbidden - Admins only')
    return user
