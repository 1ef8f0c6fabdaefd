from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from backup_monitor.api.serializers import api_key_dict
from backup_monitor.core.deps import StorageDep

router = APIRouter()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiKeyCreate(_CamelModel):
    name: str
    device_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True


class ApiKeyUpdate(_CamelModel):
    name: Optional[str] = None
    device_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None


@router.get("")
def list_api_keys(storage: StorageDep):
    return [api_key_dict(k) for k in storage.get_api_keys()]


@router.post("", status_code=201)
def create_api_key(body: ApiKeyCreate, storage: StorageDep):
    if body.device_id is not None and not storage.get_device(body.device_id):
        raise HTTPException(status_code=404, detail="Device not found")
    api_key, raw = storage.create_api_key(
        name=body.name,
        device_id=body.device_id,
        expires_at=body.expires_at,
        is_active=body.is_active,
    )
    result = api_key_dict(api_key)
    result["key"] = raw  # returned once, never stored in plaintext
    return result


@router.patch("/{key_id}")
def update_api_key(key_id: int, body: ApiKeyUpdate, storage: StorageDep):
    changes = body.model_dump(exclude_unset=True)
    if changes.get("device_id") is not None and not storage.get_device(changes["device_id"]):
        raise HTTPException(status_code=404, detail="Device not found")
    api_key = storage.update_api_key(key_id, **changes)
    if not api_key:
        raise HTTPException(status_code=404, detail="API key not found")
    return api_key_dict(api_key)


@router.delete("/{key_id}", status_code=204)
def delete_api_key(key_id: int, storage: StorageDep):
    if not storage.delete_api_key(key_id):
        raise HTTPException(status_code=404, detail="API key not found")
