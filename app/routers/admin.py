from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import CurrentUser, require_admin
from app.schemas.common import MessageResponse
from app.schemas.profiles import (
    ProfileCreate,
    ProfileEnvelope,
    ProfileListEnvelope,
    ProfileUpdate,
)
from app.services.profiles import ProfileExistsError, ProfileNotFoundError, profile_store

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


@router.post(
    "/users", response_model=ProfileEnvelope, status_code=status.HTTP_201_CREATED
)
def create_user(payload: ProfileCreate) -> ProfileEnvelope:
    try:
        profile = profile_store.create_profile(payload)
    except ProfileExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return ProfileEnvelope(user=profile)


@router.get("/users", response_model=ProfileListEnvelope)
def list_users() -> ProfileListEnvelope:
    return ProfileListEnvelope(users=profile_store.list_staff())


@router.put("/users/{user_id}", response_model=ProfileEnvelope)
def update_user(user_id: str, payload: ProfileUpdate) -> ProfileEnvelope:
    try:
        profile = profile_store.update_profile(user_id, payload)
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ProfileEnvelope(user=profile)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str, current: CurrentUser = Depends(require_admin)
) -> MessageResponse:
    if user_id == current.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admin cannot delete himself",
        )
    try:
        profile_store.delete_profile(user_id)
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return MessageResponse(message="User deleted")
