# backend/app/api/v1/endpoints/users.py

from fastapi import APIRouter, Depends
from typing import List
from app.schemas.user import User, UserInDB, UserUpdate
from app.api import deps
from app.services.user_service import UserService

router = APIRouter()

@router.get("/me", response_model=User)
def read_users_me(current_user: User = Depends(deps.get_current_user)):
    return current_user

@router.get("/", response_model=List[UserInDB])
def list_users(
    current_user: User = Depends(deps.require_roles("admin")),
    users: UserService = Depends(deps.get_user_service),
):
    return users.list()

@router.get("/assignable", response_model=List[UserInDB])
def list_assignable_users(
    current_user: User = Depends(deps.require_roles("admin")),
    users: UserService = Depends(deps.get_user_service),
):
    return users.assignable()

@router.get("/{user_id}", response_model=UserInDB)
def get_user(
    user_id: str,
    current_user: User = Depends(deps.get_current_user),
    users: UserService = Depends(deps.get_user_service),
):
    return users.read_as(current_user, user_id)

@router.put("/{user_id}", response_model=UserInDB)
def update_user(
    user_id: str,
    user_update: UserUpdate,
    current_user: User = Depends(deps.get_current_user),
    users: UserService = Depends(deps.get_user_service),
):
    return users.update(current_user, user_id, user_update)

@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    current_user: User = Depends(deps.require_roles("admin")),
    users: UserService = Depends(deps.get_user_service),
):
    users.delete(current_user, user_id)
    return {"detail": "User deleted successfully"}
