from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

import logging
import time

import config
from db import Base, engine
from errors import InventoryError
from notifications import SmtpMailer
from routers import ALL_ROUTERS

import orm  # noqa: F401  (registers tables on Base.metadata)

# -----------------------
# Logging
# -----------------------
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("app")

app = FastAPI(title="Office Inventory API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)

app.state.mailer = SmtpMailer()

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

@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    if exc.status_code >= 500:
        logger.error("path=%s error=%s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("database error path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "database error"})

@app.get("/")
def root():
    return {"message": "Office Inventory API Running!", "docs": "/docs"}

for r in ALL_ROUTERS:
    app.include_router(r)

app.mount("/uploads", StaticFiles(directory=str(config.UPLOAD_DIR)), name="uploads")
