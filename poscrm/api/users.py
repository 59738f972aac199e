from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from poscrm.api.deps import get_current_user, require_admin
from poscrm.application.schemas import ClientCreate, DebtAdjustmentCreate, UserUpdate
from poscrm.application.user_service import UserService, user_dict
from poscrm.domain.models import User
from poscrm.infrastructure.db import get_db

router = APIRouter(prefix="/api/users", tags=["users"])

@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return user_dict(user)

@router.get("/clients")
def list_clients(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Clients an admin can assign an order to."""
    return UserService(db).clients()

@router.get("")
def list_users(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = "",
    role: str = "",
):
    return UserService(db).list_users(page=page, limit=limit, search=search, role=role)

@router.post("", status_code=201)
def create_client(payload: ClientCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user = UserService(db).create_client(payload)
    return {"message": "Client user created successfully", "user": user_dict(user)}

@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return user_dict(UserService(db).get_for(user, user_id))

@router.get("/{user_id}/profile")
def get_profile(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return UserService(db).profile(user_id)

@router.put("/{user_id}")
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    updated = UserService(db).update(user, user_id, payload)
    return {"message": "User updated successfully", "user": user_dict(updated)}

@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    deleted = UserService(db).delete(user_id)
    return {"message": f"User '{deleted.name}' deleted successfully", "deletedUserId": user_id}

@router.get("/{user_id}/debt")
def get_debt(user_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return UserService(db).debt(user, user_id)

# Not behind require_admin: the service answers non-admins with a specific 403
@router.put("/{user_id}/debt")
def adjust_debt(user_id: int, payload: DebtAdjustmentCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return UserService(db).adjust_debt(user, user_id, payload)
