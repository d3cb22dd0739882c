from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
import uvicorn
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from omr_server import __version__, config
from omr_server.routers import answer_keys, evaluations, settings

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = AsyncIOMotorClient(config.MONGODB_URL)
    app.state.database = client.get_database(config.MONGODB_DATABASE)
    logger.info(f"MongoDB client ready for database {config.MONGODB_DATABASE}")
    yield
    client.close()
    logger.info("MongoDB connection closed")


app = FastAPI(
    title="OMR Scoring API",
    description="Scores recognized OMR answer sheets against versioned answer keys",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(answer_keys.router, prefix="/api/answer-keys", tags=["answer-keys"])
app.include_router(evaluations.router, prefix="/api/evaluations", tags=["evaluations"])
app.include_router(settings.router, prefix="/api/settings", tags=["settings"])


# Health check endpoint
@app.get("/api/health")
async def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# Error handling
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Server error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc),
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


def run():
    uvicorn.run("omr_server.main:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
