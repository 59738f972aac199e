from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from poscrm.api.deps import get_current_user, require_admin
from poscrm.application.product_service import ProductService
from poscrm.application.schemas import ProductCreate, ProductRead
from poscrm.domain.models import User
from poscrm.infrastructure.db import get_db

router = APIRouter(prefix="/api/products", tags=["products"])

@router.get("", response_model=list[ProductRead])
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ProductService(db).list_products(category=category, search=search)

@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return ProductService(db).get(product_id)

@router.post("", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return ProductService(db).create(payload)

@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, payload: ProductCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return ProductService(db).update(product_id, payload)
