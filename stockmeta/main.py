from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
import time
from .config import settings
from .db import engine, AsyncSessionLocal
from .models import Base
from .logger import logger
from .exceptions import (
    StockMetaBaseException,
    stockmeta_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)
from .routes import account, images, sessions, svg
from .schemas import HealthResponse
from .services.sessions import check_session_store

app = FastAPI(
    title="Stock Metadata API",
    version="1.0.0",
    description="Titles, descriptions, keywords and categories for stock image marketplaces"
)

app.add_exception_handler(StockMetaBaseException, stockmeta_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(
        f"Request: {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
        }
    )

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Response: {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        }
    )

    return response

app.include_router(images.router)
app.include_router(svg.router)
app.include_router(account.router)
app.include_router(sessions.router)

@app.on_event("startup")
async def startup():
    logger.info("Starting Stock Metadata API")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    async with AsyncSessionLocal() as db:
        if not await check_session_store(db):
            logger.warning("Database setup incomplete: session tables are not reachable")

    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; requests must send X-Gemini-Api-Key")

@app.on_event("shutdown")
async def shutdown():
    logger.info("Shutting down Stock Metadata API")
    await engine.dispose()

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(status="ok")
