"""MongoDB index management.

Index creation tolerates indexes left behind by earlier schema versions:
an index with the wanted name but other keys, or the wanted keys under
another name, is dropped and recreated.
"""

from logging import getLogger

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

logger = getLogger(__name__)


def create_index_safe(collection: Collection, keys: list, name: str, **kwargs) -> bool:
    """Create an index, replacing a conflicting legacy index if needed."""
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except PyMongoError as e:
        if "already exists" not in str(e) and "Conflict" not in str(e):
            raise

    stale = _find_conflicting_index(collection, keys, name)
    if stale is None:
        logger.error("Failed to resolve index conflict", extra={"index": name})
        return False

    logger.warning("Dropping conflicting index", extra={"index": stale})
    collection.drop_index(stale)
    collection.create_index(keys, name=name, **kwargs)
    logger.info("Recreated index", extra={"index": name})
    return True


def _find_conflicting_index(collection: Collection, keys: list, name: str) -> str | None:
    wanted = dict(keys)
    for idx_name, idx_info in collection.index_information().items():
        if idx_name == '_id_':
            continue
        if idx_name == name or dict(idx_info.get('key', [])) == wanted:
            return idx_name
    return None


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at app startup.

    The unique email index is what makes concurrent first logins for the
    same address collapse into a single account.
    """
    from adapter.mongodb.user_repository import MongoUserRepository

    return MongoUserRepository(db).ensure_indexes()
