import traceback

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

import models  # noqa: F401  registers every table on Base.metadata
from database import Base, engine
from errors import SocialError, Timeout
from routes import (
    users,
    posts,
    follows,
    notifications,
    admin,
)
from utils.logger import setup_api_logger

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Together with AI API (Users, Posts, Likes, Comments, Follows, Notifications)")

# setup file logger for API failures
api_logger = setup_api_logger()


async def _body(request) -> str:
    try:
        body = await request.body()
    except Exception:
        body = b""
    return body.decode('utf-8', errors='replace')


@app.exception_handler(Exception)
async def generic_exception_handler(request, exc):
    # log request info and stacktrace
    api_logger.error("Unhandled exception on %s %s | body=%s | error=%s\n%s",
                     request.method, request.url.path, await _body(request), str(exc),
                     "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.exception_handler(SocialError)
async def social_error_handler(request, exc: SocialError):
    log = api_logger.error if isinstance(exc, Timeout) else api_logger.warning
    log("%s on %s %s | status=%s | body=%s | detail=%s",
        type(exc).__name__, request.method, request.url.path, exc.status_code,
        await _body(request), exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    api_logger.warning("HTTPException on %s %s | status=%s | body=%s | detail=%s",
                       request.method, request.url.path, exc.status_code,
                       await _body(request), str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(users.router)
app.include_router(posts.router)
app.include_router(follows.router)
app.include_router(notifications.router)
app.include_router(admin.router)
