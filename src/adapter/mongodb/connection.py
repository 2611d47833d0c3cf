"""MongoDB client for the users store.

The client is created lazily and cached. A cached client that stops
answering ping is replaced; a failed first connection (bad URL, no server)
is not retried for the lifetime of the process.
"""

import os
import logging
from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

# Driver-level logs are noisy at INFO
logging.getLogger('pymongo').setLevel(logging.WARNING)

MONGO_URL = os.getenv('MONGO_URL')
DATABASE_NAME = os.getenv('MONGODB_DATABASE', 'teamhub')
USERS_COLLECTION_NAME = 'users'

_CLIENT_OPTIONS = {
    'serverSelectionTimeoutMS': 5000,
    'connectTimeoutMS': 5000,
    'socketTimeoutMS': 30000,
    'maxPoolSize': 10,
    'minPoolSize': 0,
    'maxIdleTimeMS': 30000,
    'waitQueueTimeoutMS': 10000,
    'retryWrites': True,
    'retryReads': True,
}

_client_cache: MongoClient | None = None
_connected_once = False
_gave_up = False


def reset_client():
    """Forget the cached client and any earlier failure."""
    global _client_cache, _connected_once, _gave_up
    _client_cache = None
    _connected_once = False
    _gave_up = False


def _ping(client: MongoClient) -> bool:
    try:
        client.admin.command('ping')
        return True
    except PyMongoError:
        return False


def _connect() -> MongoClient | None:
    global _connected_once, _gave_up

    client = MongoClient(MONGO_URL, **_CLIENT_OPTIONS)
    if _ping(client):
        if not _connected_once:
            logger.info("MongoDB connected", extra={"database": DATABASE_NAME})
        _connected_once = True
        return client

    client.close()
    if not _connected_once:
        logger.error("MongoDB initial connection failed", extra={"database": DATABASE_NAME})
        _gave_up = True
    return None


def get_mongodb_client() -> MongoClient | None:
    """Return a healthy cached client, reconnecting if needed, or None."""
    global _client_cache, _gave_up

    if _client_cache is not None:
        if _ping(_client_cache):
            return _client_cache
        logger.debug("Cached MongoDB client failed ping, reconnecting")
        _client_cache = None

    if _gave_up:
        return None

    if not MONGO_URL:
        logger.error("MONGO_URL not configured")
        _gave_up = True
        return None

    try:
        _client_cache = _connect()
    except PyMongoError as e:
        logger.error("MongoDB client could not be created", extra={"error": str(e)[:200]})
        if not _connected_once:
            _gave_up = True
        _client_cache = None
    return _client_cache
