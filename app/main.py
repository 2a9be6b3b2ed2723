from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from app.core import config
from app.core.errors import ServiceError, UpstreamError, ValidationError
from app.core.rate_limit import limiter
from app.features.security_schema.routes import router as security_schema_router
from app.features.record_access.routes import router as record_access_router
from app.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="CRM Security Schema",
    description="Object, field and record level permissions of Salesforce users",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.app.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
if config.DROP_EMPTY_PERMISSIONS:
    log.warning("Objects and fields without permissions are left out of security schemas")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    content = ValidationError("Invalid request", details=errors).to_dict()
    return JSONResponse(status_code=400, content=jsonable_encoder(content))


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    else:
        log.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    log.exception("%s %s failed unexpectedly", request.method, request.url.path)
    content = UpstreamError("Unexpected CRM failure", details=str(exc)).to_dict()
    return JSONResponse(status_code=500, content=jsonable_encoder(content))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast", "code": "RATE_LIMITED"}, status_code=429)


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "CRM Security Schema API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "endpoints": {
            "security_schema": "GET /security-schema/{userId?}",
            "record_access": "POST /record-access/{userId?}",
        },
        "drop_empty_permissions": config.DROP_EMPTY_PERMISSIONS,
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Object and field level security
app.include_router(security_schema_router, tags=["security-schema"])

# Record level access
app.include_router(record_access_router, tags=["record-access"])
