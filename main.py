import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import orm  # noqa: F401  registers the tables on Base.metadata
from db import Base, engine
from errors import LifecycleError
from routers import ALL_ROUTERS

app = FastAPI(title="IT Asset Management API")

Base.metadata.create_all(bind=engine)

# -----------------------
# Logging
# -----------------------
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("app")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed_ms = int((time.time() - start) * 1000)
    logger.info(
        "method=%s path=%s status=%s elapsed_ms=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


for r in ALL_ROUTERS:
    app.include_router(r)


@app.get("/")
def root():
    return {"message": "IT Asset Management API", "docs": "/docs"}
