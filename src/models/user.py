"""
User-related Pydantic models
"""

from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pymongo.results import UpdateResult, DeleteResult


class UserCreateRequest(BaseModel):
    """Body of POST /users; every field is optional and unknown keys are ignored"""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[Union[int, float]] = None
    is_active: Optional[bool] = Field(None, alias="isActive")

    def to_record(self) -> dict:
        """Fields the caller sent, nulls included, under their stored names"""
        return self.model_dump(by_alias=True, exclude_unset=True)


class UpdateResultResponse(BaseModel):
    """Outcome of an update: counts, not the updated record"""
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool
    matched_count: int = Field(0, alias="matchedCount")
    modified_count: int = Field(0, alias="modifiedCount")
    upserted_id: Optional[Any] = Field(None, alias="upsertedId")
    upserted_count: int = Field(0, alias="upsertedCount")

    @classmethod
    def from_result(cls, result: UpdateResult) -> "UpdateResultResponse":
        if not result.acknowledged:
            return cls(acknowledged=False)
        upserted_id = result.upserted_id
        return cls(
            acknowledged=True,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            upserted_id=str(upserted_id) if upserted_id is not None else None,
            upserted_count=1 if upserted_id is not None else 0,
        )


class DeleteResultResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool
    deleted_count: int = Field(0, alias="deletedCount")

    @classmethod
    def from_result(cls, result: DeleteResult) -> "DeleteResultResponse":
        if not result.acknowledged:
            return cls(acknowledged=False)
        return cls(acknowledged=True, deleted_count=result.deleted_count)


class UserUpdateFields(BaseModel):
    """Typed view of the schema fields inside a partial update"""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[Union[int, float]] = None
    is_active: Optional[bool] = Field(None, alias="isActive")


SCHEMA_FIELDS = {"name", "email", "age", "isActive"}


def cast_update_fields(update: Dict[str, Any]) -> Dict[str, Any]:
    """
    Cast schema fields of an update map to their declared types.

    Keys outside the schema pass through untouched; raises
    pydantic.ValidationError when a schema field cannot be cast.
    """
    known = {key: value for key, value in update.items() if key in SCHEMA_FIELDS}
    cast = UserUpdateFields.model_validate(known).model_dump(by_alias=True, exclude_unset=True)
    return {**update, **cast}
