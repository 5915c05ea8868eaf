"""Process-wide MongoDB client.

One client is created lazily and reused by every request. Callers get None
instead of an exception when the database cannot be reached, and decide
themselves how to report it (503 from user routes, "degraded" from /health).
"""

import os
import logging
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

logging.getLogger('pymongo').setLevel(logging.WARNING)

MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGO_DB', 'backend')
USERS_COLLECTION_NAME = 'users'

CLIENT_OPTIONS = {
    'serverSelectionTimeoutMS': 5000,
    'connectTimeoutMS': 5000,
    'socketTimeoutMS': 30000,
    'maxPoolSize': 10,
    'retryWrites': True,
    'retryReads': True,
}

_client: MongoClient | None = None


def ping(client: MongoClient) -> str | None:
    """Round-trip to the server. Returns None when healthy, else a short reason."""
    try:
        client.admin.command('ping')
    except PyMongoError as e:
        logger.warning("MongoDB ping failed", extra={"error": str(e)[:200]})
        return "Connection error"
    return None


def get_mongodb_client() -> MongoClient | None:
    """Return the shared client, connecting on first use.

    A cached client that stops answering is dropped and a new connection is
    attempted, so the service recovers once the database is back.
    """
    global _client

    if _client is not None:
        if ping(_client) is None:
            return _client
        reset_client()

    if not MONGO_URL:
        logger.error("MONGO_URL not configured")
        return None

    try:
        client = MongoClient(MONGO_URL, **CLIENT_OPTIONS)
    except PyMongoError as e:
        logger.error("Invalid MongoDB configuration", extra={"error": str(e)[:200]})
        return None

    if ping(client) is not None:
        client.close()
        return None

    logger.info("Connected to MongoDB", extra={"database": DATABASE_NAME})
    _client = client
    return client


def reset_client() -> None:
    """Close and forget the shared client. Called on shutdown."""
    global _client
    if _client is not None:
        _client.close()
    _client = None
