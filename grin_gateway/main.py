from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .routes import checkout, order, reconciliation
from .jobs.scheduler import ReconciliationScheduler

from .config import GZIP_MINIMUM_SIZE, SCHEDULER_ENABLED


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = ReconciliationScheduler() if SCHEDULER_ENABLED else None
    if scheduler:
        scheduler.start()
    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown()


app = FastAPI(title="GRIN Payment Gateway", lifespan=lifespan)

app.add_middleware(GZipMiddleware, minimum_size=GZIP_MINIMUM_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(checkout.router)
app.include_router(order.router)
app.include_router(reconciliation.router)
