"""
User API routes
Each route is a direct pass-through to a single UserStore call.
Store failures are left to the centralized error handlers.
"""

import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from database.connection import get_user_store
from models.user import (
    UserCreateRequest,
    UpdateResultResponse,
    DeleteResultResponse,
    cast_update_fields,
)
from services.user_store import UserStore

# Paths are registered without a router prefix so each one is kept exactly as written
router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/users")
async def create_user(
    request: Optional[UserCreateRequest] = None,
    store: UserStore = Depends(get_user_store)
):
    """Create a user from any of name, email, age and isActive"""
    request = request or UserCreateRequest()
    return await store.insert(request.to_record())

@router.get("/users")
async def list_users(store: UserStore = Depends(get_user_store)) -> List[Dict[str, Any]]:
    """Get all users, every stored field included"""
    return await store.find_all()

@router.get("/users/active")
async def list_active_users(store: UserStore = Depends(get_user_store)) -> List[Dict[str, Any]]:
    """Get users whose isActive is true"""
    return await store.find_active()

@router.put("/users/{user_id}", response_model=UpdateResultResponse)
async def update_user(
    user_id: str,
    update: Optional[Dict[str, Any]] = Body(None),
    store: UserStore = Depends(get_user_store)
):
    """Merge an arbitrary field map into a user; returns counts, not the user"""
    try:
        fields = cast_update_fields(update or {})
    except ValidationError as e:
        raise RequestValidationError(e.errors(), body=update)

    result = await store.update_by_id(user_id, fields)
    return UpdateResultResponse.from_result(result)

# No leading slash: this path never matches an absolute request path,
# so PUT /users/{user_id}/deactivate answers 404. Kept as-is for compatibility.
@router.put("users/{user_id}/deactivate", response_model=UpdateResultResponse)
async def deactivate_user(user_id: str, store: UserStore = Depends(get_user_store)):
    """Set isActive to false"""
    result = await store.deactivate(user_id)
    return UpdateResultResponse.from_result(result)

@router.delete("/users/{user_id}", response_model=DeleteResultResponse)
async def delete_user(user_id: str, store: UserStore = Depends(get_user_store)):
    """Delete a user; returns the deleted count"""
    result = await store.delete_by_id(user_id)
    return DeleteResultResponse.from_result(result)
