# main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from storefront.version import VERSION
from storefront.api.v1 import routes_auth, routes_products
from storefront.core.config import settings
from storefront.core.errors import ServiceError, StoreUnavailable
from storefront.core.logging import get_logger
from storefront.core.resources import Resources
from prometheus_fastapi_instrumentator import Instrumentator

logger = get_logger(__name__)

# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title='Storefront API', version=VERSION)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/api/metrics",
    should_gzip=True,
)

@app.get('/health')
def health(): return {'status':'ok'}

@app.get('/api/health')
def api_health(): return {'status':'ok'}

@app.get('/v1/_info')
def info(): return {'service':'storefront','version':VERSION}

@app.exception_handler(ServiceError)
async def handle_service_error(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("service_error", path=request.url.path, method=request.method,
                     status_code=exc.status_code, cause=repr(exc.__cause__))
    else:
        logger.warning("client_error", path=request.url.path, method=request.method,
                       status_code=exc.status_code, error=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message})

@app.exception_handler(SQLAlchemyError)
@app.exception_handler(RedisError)
async def handle_store_error(request: Request, exc: Exception):
    logger.error("store_error", path=request.url.path, method=request.method, error=repr(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={'detail': StoreUnavailable.message})

@app.exception_handler(Exception)
async def handle_uncaught(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path, method=request.method,
                 error_type=type(exc).__name__, exc_info=exc)
    return JSONResponse(status_code=500, content={'detail': StoreUnavailable.message})

@app.on_event("startup")
async def startup_event():
    # handles attached before startup belong to whoever attached them
    app.state.owns_resources = getattr(app.state, 'resources', None) is None
    if app.state.owns_resources:
        app.state.resources = Resources.from_settings(settings)
    if settings.CREATE_TABLES_ON_STARTUP:
        app.state.resources.create_tables()
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("route_registered", methods=sorted(route.methods), path=route.path)

@app.on_event("shutdown")
async def shutdown_event():
    resources = getattr(app.state, 'resources', None)
    if resources is not None and getattr(app.state, 'owns_resources', False):
        resources.close()
        app.state.resources = None

app.include_router(routes_auth.router, prefix='/api/auth', tags=['auth'])
app.include_router(routes_products.router, prefix='/api/products', tags=['products'])
