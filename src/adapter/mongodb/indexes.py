"""MongoDB index management utilities.

Index creation with conflict resolution, shared by every MongoDocumentStore.
The unique indexes on users.email and users.truvedaLink are the real
uniqueness guarantee; pre-checks in the services layer only exit early.
"""

from logging import getLogger

from pymongo.errors import PyMongoError

logger = getLogger(__name__)


def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create index, replacing an existing one that clashes by name or key spec."""
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except PyMongoError as e:
        if "already exists" not in str(e) and "Conflict" not in str(e):
            raise
        return _replace_conflicting(collection, keys, name, **kwargs)


def _replace_conflicting(collection, keys: list, name: str, **kwargs) -> bool:
    wanted = dict(keys)

    for existing_name, info in collection.index_information().items():
        if existing_name == '_id_':
            continue

        same_name = existing_name == name
        same_keys = dict(info.get('key', [])) == wanted
        if same_name != same_keys:
            logger.warning("Dropping conflicting index", extra={"collection": collection.name, "index": existing_name})
            collection.drop_index(existing_name)
            collection.create_index(keys, name=name, **kwargs)
            logger.info("Recreated index", extra={"collection": collection.name, "index": name})
            return True

    logger.error("Failed to resolve index conflict", extra={"collection": collection.name, "index": name})
    return False


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for every entity collection. Called at app startup."""
    from adapter.mongodb.document_store import MongoDocumentStore
    from domain.model.entities import ALL_SCHEMAS

    results = [
        MongoDocumentStore(db, schema.collection).ensure_indexes(schema.unique_fields)
        for schema in ALL_SCHEMAS
    ]
    return all(results)
