from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_current_user
from app.data.database import get_db
from app.data.models.user import UserModel
from app.services.user_service import UserService
from app.services.order_service import OrderService
from app.domain.schemas import OrderOut, TokenOut, UserLogin, UserRead, UserRegister

router = APIRouter(prefix="/user", tags=["user"])

@router.post("/register", response_model=TokenOut, status_code=201)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    return UserService(db).register(payload)

@router.post("/login", response_model=TokenOut)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    return UserService(db).login(payload)

@router.get("/me", response_model=UserRead)
def me(user: UserModel = Depends(get_current_user)):
    return user

@router.get("/my_orders", response_model=List[OrderOut])
def my_orders(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return OrderService(db).list_orders(user.id)
