from fastapi import FastAPI, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
from contextlib import asynccontextmanager

from userservice.base_service import BaseService, init_models
from userservice.auth.middleware import authenticate_request
from userservice.auth.router import router as auth_router
from userservice.users.router import router as users_router

VERSION = "0.1.0"

# Create shared base service instance
base_service = BaseService()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    base_service.log_event("service.startup", {"service": "userservice"})
    try:
        await init_models()
    except Exception as e:
        base_service.log_error(e, context="Creating database tables")
        raise
    yield
    base_service.log_event("service.shutdown", {"service": "userservice"})


# Every request passes through the auth filter; it never rejects on its own
app = FastAPI(
    title="User Service API",
    description="User registration, login and profiles with JWT sessions",
    version=VERSION,
    lifespan=lifespan,
    dependencies=[Depends(authenticate_request)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or invalid request data is a plain 400."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": errors},
    )


app.include_router(auth_router)
app.include_router(users_router)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint returning API information."""
    return base_service.status_response(
        message="User Service API",
        data={
            "name": "User Service API",
            "version": VERSION,
            "services": ["auth", "users"],
        }
    )


@app.get("/health", tags=["health"])
async def health_check():
    """Overall system health check."""
    return base_service.status_response(
        message="System health",
        data={
            "services": {
                "auth": "online",
                "users": "online"
            }
        }
    )


# For running directly with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("userservice.main:app", host="0.0.0.0", port=8000, reload=True)
