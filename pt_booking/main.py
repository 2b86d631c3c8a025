import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .exceptions import InvalidArgument, UpstreamUnavailable
from .redis_client import redis_client
from .routers import pt

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Personal Training Booking API")
app.include_router(pt.router)


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    logger.info(f"Rejected search {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": "We couldn't complete your search. Start your search again."},
    )


@app.exception_handler(UpstreamUnavailable)
async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailable):
    logger.error(f"Upstream unavailable for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Schedule service is temporarily unavailable"},
    )


@app.get("/health")
def health():
    return {"redis": redis_client.ping()}
