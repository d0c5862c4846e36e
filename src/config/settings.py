"""
Configuration settings for the Users Backend
"""

import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Environment configuration
MONGO_URL = os.getenv("MONGO_URL")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME")  # Defaults to the database named in MONGO_URL
USERS_COLLECTION = os.getenv("USERS_COLLECTION", "users")
PORT = int(os.getenv("PORT", 3000))

# Driver default applies when unset
_selection_timeout = os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS")
MONGO_SERVER_SELECTION_TIMEOUT_MS = int(_selection_timeout) if _selection_timeout else None

# Fallback when the connection string names no database
DEFAULT_DB_NAME = "test"

# The service still starts without a connection string; store requests fail individually
if not MONGO_URL:
    logger.error("MONGO_URL environment variable is not set - user routes will return 503")
