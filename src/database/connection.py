"""
Record store connection management
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from config.settings import (
    MONGO_URL,
    MONGO_DB_NAME,
    USERS_COLLECTION,
    MONGO_SERVER_SELECTION_TIMEOUT_MS,
    DEFAULT_DB_NAME,
)
from services.user_store import UserStore, StoreUnavailableError

logger = logging.getLogger(__name__)


def create_client(url: str) -> AsyncMongoClient:
    """Create the shared client; only pass options that were configured"""
    options = {}
    if MONGO_SERVER_SELECTION_TIMEOUT_MS is not None:
        options["serverSelectionTimeoutMS"] = MONGO_SERVER_SELECTION_TIMEOUT_MS
    return AsyncMongoClient(url, **options)


async def init_database(app: FastAPI, url: Optional[str] = MONGO_URL):
    """
    Connect to the record store once at startup and attach the user store handle.

    A failed connection is logged and the application keeps serving;
    each request then fails on its own when it reaches the store.
    """
    app.state.mongo_client = None
    app.state.user_store = None

    if not url:
        logger.error("Error connecting to MongoDB: no connection string configured")
        return

    try:
        client = create_client(url)
    except PyMongoError as e:
        # Malformed connection string
        logger.error(f"Error connecting to MongoDB: {e}")
        return

    if MONGO_DB_NAME:
        database = client[MONGO_DB_NAME]
    else:
        database = client.get_default_database(default=DEFAULT_DB_NAME)

    app.state.mongo_client = client
    app.state.user_store = UserStore(database[USERS_COLLECTION])

    try:
        await client.admin.command("ping")
        logger.info("Connected to MongoDB")
    except PyMongoError as e:
        logger.error(f"Error connecting to MongoDB: {e}")


async def close_database(app: FastAPI):
    """Close the record store client"""
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        await client.close()
    logger.info("Database connections closed")


def get_user_store(request: Request) -> UserStore:
    """FastAPI dependency returning the user store attached at startup"""
    store = getattr(request.app.state, "user_store", None)
    if store is None:
        raise StoreUnavailableError("Record store not connected")
    return store
