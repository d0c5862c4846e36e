"""
User store - thin adapter over the users collection of the record store
"""

import logging
from typing import Any, Dict, List

from bson import ObjectId
from pymongo.results import UpdateResult, DeleteResult

logger = logging.getLogger(__name__)


class StoreUnavailableError(Exception):
    """Raised when no record store handle is available for a request"""


def to_object_id(user_id: str) -> ObjectId:
    """Cast a wire id to an ObjectId; raises bson.errors.InvalidId when malformed"""
    return ObjectId(user_id)


def _render_ids(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: _render_ids(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_render_ids(item) for item in value]
    return value


def serialize_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Render a stored document, every field included, with ObjectIds as strings"""
    return _render_ids(dict(document))


class UserStore:
    """
    Insert, find, update-by-id and delete-by-id over a single collection.

    Every call is a single attempt; driver errors propagate to the caller.
    """

    def __init__(self, collection):
        self.collection = collection

    async def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Persist a new user record

        Args:
            record: Field values to store; the store assigns the id

        Returns:
            The persisted record including its _id
        """
        document = dict(record)
        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info(f"Inserted user {result.inserted_id}")
        return serialize_document(document)

    async def find_all(self) -> List[Dict[str, Any]]:
        """Return every user in natural store order"""
        return await self.find_where({})

    async def find_where(self, predicate: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Return every user whose fields equal the predicate values"""
        documents = await self.collection.find(predicate).to_list(length=None)
        return [serialize_document(doc) for doc in documents]

    async def find_active(self) -> List[Dict[str, Any]]:
        return await self.find_where({"isActive": True})

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> UpdateResult:
        """
        Merge fields into the user with the given id

        Args:
            user_id: Wire form of the user's ObjectId
            fields: Open-ended field map applied with $set

        Returns:
            The driver's UpdateResult; zero counts when no user has that id
        """
        object_id = to_object_id(user_id)

        if not fields:
            # Nothing to $set, the store is not contacted
            return UpdateResult({"n": 0, "nModified": 0}, acknowledged=False)

        result = await self.collection.update_one({"_id": object_id}, {"$set": fields})
        logger.info(
            f"Updated user {user_id}: matched={result.matched_count} modified={result.modified_count}"
        )
        return result

    async def deactivate(self, user_id: str) -> UpdateResult:
        return await self.update_by_id(user_id, {"isActive": False})

    async def delete_by_id(self, user_id: str) -> DeleteResult:
        """Remove the user with the given id; zero count when absent"""
        result = await self.collection.delete_one({"_id": to_object_id(user_id)})
        logger.info(f"Deleted user {user_id}: deleted={result.deleted_count}")
        return result
