from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from .db import init_db
from .logger import setup_logger
from .routers import omh
from .services.payload_ids import register_runkeeper, registered_domains


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logger()
    init_db()
    register_runkeeper()
    logger.info(f"Registered OMH third-party domains: {registered_domains()}")
    yield


app = FastAPI(
    title="ohmage RunKeeper API",
    version="0.1.0",
    description="Open mHealth reads of RunKeeper Health Graph data",
    lifespan=lifespan,
)

app.include_router(omh.router, prefix="/omh/v1.0", tags=["omh"])


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "ohmage-runkeeper"}
