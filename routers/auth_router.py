from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from Controller import auth_controller
from core.auth_utils import get_current_user
from database import get_db
from model.user_model import Users
from model.user_schema import LoginRequest, RegisterRequest

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register")
def register(request: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    return auth_controller.register_user(request, response, db)


@router.post("/login")
async def login(request_data: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    return await auth_controller.login_user(request_data, request, response, db)


@router.get("/me")
def me(user: Users = Depends(get_current_user)):
    return auth_controller.current_user_info(user)


@router.post("/logout")
def logout(response: Response):
    return auth_controller.logout_user(response)
