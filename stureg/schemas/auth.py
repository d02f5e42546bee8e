from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    # пустые значения проверяет сам эндпоинт, чтобы вернуть понятное сообщение
    username: str = ""
    password: str = ""


class TokenResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    message: str = "登录成功"


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    old_password: str = ""
    new_password: str = ""


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ProfileResponse(BaseModel):
    success: bool = True
    username: str
