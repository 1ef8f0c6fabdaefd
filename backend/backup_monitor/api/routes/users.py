from typing import Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from backup_monitor.api.serializers import user_dict
from backup_monitor.core.deps import StorageDep
from backup_monitor.storage.base import DuplicateUsernameError

router = APIRouter()


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    role: Literal["admin", "manager", "viewer"] = "viewer"


@router.get("")
def list_users(storage: StorageDep):
    return [user_dict(u) for u in storage.get_users()]


@router.post("", status_code=201)
def create_user(body: UserCreate, storage: StorageDep):
    try:
        user = storage.create_user(body.username, body.password, body.role)
    except DuplicateUsernameError:
        raise HTTPException(status_code=409, detail="Username already exists")
    return user_dict(user)


@router.get("/{user_id}")
def get_user(user_id: int, storage: StorageDep):
    user = storage.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user_dict(user)
