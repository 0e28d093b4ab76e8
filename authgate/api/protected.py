"""Example resource behind the access guard."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from authgate.api.deps import require_user_id

router = APIRouter(prefix="/api/protected", tags=["protected"])


@router.get("")
async def protected_resource(user_id: str = Depends(require_user_id)):
    return {"message": "Accessing protected", "user_id": user_id}
