"""
Users Backend API Server
Create, read, update and delete over a single users collection
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from database.connection import init_database, close_database
from api.routes import root, users
from utils.error_handling import setup_error_handling

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    await init_database(app)
    yield
    await close_database(app)

def create_app() -> FastAPI:
    """Build the FastAPI application with routes and error handling"""
    app = FastAPI(
        title="Users Backend",
        description="CRUD API over a single users collection",
        version="1.0.0",
        lifespan=lifespan
    )

    setup_error_handling(app)

    app.include_router(root.router, tags=["Root"])
    app.include_router(users.router, tags=["Users"])

    return app

# FastAPI app instance is exported for use by uvicorn
# Server startup is handled by main.py at the project root
app = create_app()
