"""FastAPI application for building and serving pipeline graphs.

Run with ``uvicorn server.app:app`` or ``python -m server.app``.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server import graph_db
from server.graph_routes import router as graph_router

load_dotenv()

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# comma-separated; "*" allows any origin
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]


@asynccontextmanager
async def lifespan(app: FastAPI):
    graph_db.init_db()
    logger.info("graph store ready at %s", graph_db.GRAPH_DB_PATH)
    yield


app = FastAPI(
    title="Static Graph API",
    description="Turns pipeline-run manifests into renderable graphs",
    version=API_VERSION,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)
app.include_router(graph_router, prefix="/api")


@app.get("/")
def health():
    return {
        "status": "ok",
        "version": API_VERSION,
        "routes": ["/api/graphs/build", "/api/graphs", "/api/graphs/{graph_id}"],
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
