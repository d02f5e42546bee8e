import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from itsdangerous import BadData, URLSafeTimedSerializer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from stureg.config import Settings
from stureg.errors import InvalidCredentials, InvalidToken, WeakPassword
from stureg.models.admin import Admin

logger = logging.getLogger(__name__)

TOKEN_SALT = "stureg-admin-session"
MIN_PASSWORD_LENGTH = 6

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def make_crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def get_password_hash(pwd_context: CryptContext, password: str) -> str:
    return pwd_context.hash(password)


def verify_password(pwd_context: CryptContext, plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def _serializer(settings: Settings) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.secret_key, salt=TOKEN_SALT)


def issue_token(settings: Settings, username: str) -> str:
    return _serializer(settings).dumps({"username": username})


def read_token(settings: Settings, token: Optional[str]) -> str:
    """
    Возвращает имя пользователя из токена.
    Отсутствующий, испорченный, просроченный или подписанный чужим ключом
    токен даёт одно и то же InvalidToken.
    """
    if not token:
        raise InvalidToken("未提供令牌")
    try:
        payload = _serializer(settings).loads(token, max_age=settings.token_max_age)
    except BadData as e:
        raise InvalidToken() from e
    username = payload.get("username") if isinstance(payload, dict) else None
    if not username:
        raise InvalidToken()
    return username


def authenticate(db: Session, pwd_context: CryptContext, username: str, password: str) -> Admin:
    admin = db.query(Admin).filter(Admin.username == username).first()
    if not admin:
        logger.info("Login rejected: unknown username %r", username)
        raise InvalidCredentials()

    ok, new_hash = pwd_context.verify_and_update(password, admin.password_hash)
    if not ok:
        logger.info("Login rejected: wrong password for %r", username)
        raise InvalidCredentials()
    if new_hash:
        # хэш со старыми параметрами bcrypt, перехешируем
        admin.password_hash = new_hash
        db.commit()
        logger.info("Re-hashed password for %r", username)
    return admin


def change_password(
    db: Session,
    pwd_context: CryptContext,
    username: str,
    old_password: str,
    new_password: str,
) -> None:
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise WeakPassword()

    admin = db.query(Admin).filter(Admin.username == username).first()
    if not admin:
        raise InvalidCredentials("用户不存在")
    if not verify_password(pwd_context, old_password, admin.password_hash):
        raise InvalidCredentials("原密码错误")

    admin.password_hash = get_password_hash(pwd_context, new_password)
    db.commit()
    logger.info("Password changed for %r", username)


def ensure_default_admin(db: Session, pwd_context: CryptContext, settings: Settings) -> Optional[Admin]:
    """
    Первый запуск: если администраторов нет, создаём одного
    с паролем по умолчанию. Пароль заведомо слабый, его нужно сменить.
    """
    if db.query(Admin).first():
        return None

    admin = Admin(
        username=settings.admin_username,
        password_hash=get_password_hash(pwd_context, settings.admin_default_password),
    )
    db.add(admin)
    db.commit()
    logger.warning(
        "[!] Created default admin %r with the default password; change it via /api/change-password",
        settings.admin_username,
    )
    return admin


def get_current_admin(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> str:
    return read_token(request.app.state.settings, token)
