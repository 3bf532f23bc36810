from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import logging

from identity_api.config import settings
from identity_api.database import init_db
from identity_api.errors import IdentityError, InternalError, ValidationFailed, error_code_for
from identity_api.schemas.response import error_response

# Init app
app = FastAPI(title="Identity API")

# Enable logging
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600
)


# Custom OpenAPI
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version="1.0.0",
        description="Registration, OTP verification, login and password reset API",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})["BearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
        "description": "Enter JWT token in the format: Bearer <token>"
    }

    protected_paths = ["/logout", "/get-authenticate-user", "/user/"]
    for path_name, path_item in openapi_schema["paths"].items():
        if not any(protected in path_name for protected in protected_paths):
            continue

        for method_name, method_item in path_item.items():
            if method_name in ["get", "post", "put", "delete", "patch"]:
                method_item.setdefault("security", []).append({"BearerAuth": []})

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

# Route Registrations
from identity_api.routes import auth_router, user_router, health_router  # noqa: E402

for router in [auth_router, user_router, health_router]:
    app.include_router(router)
    logger.info(f"Included router: {router.prefix}")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "status": "ok",
        "message": "Identity API",
        "version": "1.0.0",
        "docs": "/docs"
    }


# ------------------ Error envelope ------------------

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    code = exc.code if isinstance(exc, IdentityError) else error_code_for(exc.status_code)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message, code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "The given data was invalid."
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        msg = str(first.get("msg", message)).removeprefix("Value error, ")
        message = f"{field}: {msg}" if field else msg

    return JSONResponse(
        status_code=ValidationFailed.status_code,
        content=error_response(message, ValidationFailed.code),
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Internal server error on {request.url.path}")
    return JSONResponse(
        status_code=InternalError.status_code,
        content=error_response(InternalError.default_message, InternalError.code),
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Identity API starting up...")
    init_db()
    logger.info("✅ Server is ready to handle requests")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 Identity API shutting down...")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "identity_api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )
