from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from stureg.database import get_db
from stureg.errors import ValidationError
from stureg.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    TokenResponse,
)
from stureg.utils.auth import authenticate, change_password, get_current_admin, issue_token

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """
    Вход администратора. Неизвестный логин и неверный пароль
    дают одинаковый ответ 401.
    """
    if not payload.username or not payload.password:
        raise ValidationError("请输入用户名和密码")

    admin = authenticate(db, request.app.state.pwd_context, payload.username, payload.password)
    token = issue_token(request.app.state.settings, admin.username)
    return TokenResponse(token=token)


@router.post("/change-password", response_model=MessageResponse)
def change_admin_password(
    payload: ChangePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    username: str = Depends(get_current_admin),
):
    if not payload.old_password or not payload.new_password:
        raise ValidationError("请输入原密码和新密码")

    change_password(db, request.app.state.pwd_context, username, payload.old_password, payload.new_password)
    return MessageResponse(message="密码修改成功")


@router.get("/me", response_model=ProfileResponse)
def get_profile(username: str = Depends(get_current_admin)):
    return ProfileResponse(username=username)
