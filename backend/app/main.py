"""Main FastAPI application."""

import logging

from datetime import timedelta
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.api.v1.api import api_router
from app.config import settings
from app import __version__
from app.auth import create_access_token, authenticate_user, get_current_active_user
from app.constants.error_messages import explain_error
from app.database import get_db
from app.exceptions import AttendanceError
from app.schemas.auth import Token, User

# Custom TRACE level
logging.TRACE = 5
logging.addLevelName(logging.TRACE, "TRACE")

# Add trace method to standard Logger class for all instances
def trace_method(self, msg, *args, **kwargs):
    if self.isEnabledFor(logging.TRACE):
        self._log(logging.TRACE, msg, args, **kwargs)

logging.Logger.trace = trace_method

# Configure root logger early
log_level_str = settings.log_level.upper()
log_level = logging.TRACE if log_level_str == "TRACE" else getattr(logging, log_level_str, logging.INFO)
if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'
    )

    root = logging.getLogger()

    # VERBOSE adds SQL statements to debug output
    if log_level_str == "VERBOSE":
        root_level = logging.DEBUG
        sqlalchemy_level = logging.INFO
        services_level = logging.DEBUG
        root.info("VERBOSE mode enabled: SQL statements and service traces active for debugging.")
    elif log_level_str == "TRACE":
        root_level = logging.TRACE
        sqlalchemy_level = logging.INFO
        services_level = logging.TRACE
    else:
        root_level = log_level
        sqlalchemy_level = logging.WARNING
        services_level = root_level

    root.setLevel(root_level)
    logging.getLogger("sqlalchemy.engine").setLevel(sqlalchemy_level)
    logging.getLogger("app.services").setLevel(services_level)

    root.trace("Trace logging enabled at startup (verbose details).") if log_level_str == "TRACE" else root.debug("Debug logging enabled at startup.")

log = logging.getLogger(__name__)

app = FastAPI(
    title="Attendance Time Tracking",
    description="Clock-in/clock-out, breaks, audit trail and work time summaries",
    version=__version__
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.post("/token", response_model=Token)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Session = Depends(get_db)
):
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me/", response_model=User)
async def read_users_me(current_user: Annotated[User, Depends(get_current_active_user)]):
    return current_user

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__
    }

@app.get("/")
async def root():
    """Root endpoint - redirect to docs."""
    return {
        "message": "Attendance Time Tracking API",
        "version": __version__,
        "docs": "/docs"
    }

app.include_router(api_router, prefix=settings.api_v1_str)

@app.exception_handler(AttendanceError)
async def attendance_exception_handler(request: Request, exc: AttendanceError):
    log.info(f"{request.method} {request.url.path} rejected: {exc.code.value}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail or explain_error(exc.message_code, settings.locale), "code": exc.code.value}
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
