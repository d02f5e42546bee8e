import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stureg.config import Settings, get_settings
from stureg.database import Base, make_engine, make_session_factory
from stureg.errors import AppError
from stureg import models  # noqa: F401  регистрирует таблицы в Base.metadata
from stureg.routers import auth as auth_router, students as students_router
from stureg.utils.auth import ensure_default_admin, make_crypt_context

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    # ("body", "studentId") -> "studentId"
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def validation_message(exc: RequestValidationError) -> str:
    missing, unknown, invalid = [], [], []
    for err in exc.errors():
        name = _field_name(err.get("loc", ()))
        kind = err.get("type", "")
        if kind in ("missing", "string_too_short"):
            missing.append(name)
        elif kind == "extra_forbidden":
            unknown.append(name)
        else:
            invalid.append(name)

    parts = []
    if missing:
        parts.append("缺少必填项: " + ", ".join(missing))
    if unknown:
        parts.append("不支持的字段: " + ", ".join(unknown))
    if invalid:
        parts.append("字段格式错误: " + ", ".join(invalid))
    return "; ".join(parts) or "请求无效"


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "message": validation_message(exc)})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "服务器错误，请稍后重试"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Собирает приложение: БД, схема, администратор по умолчанию, роуты.
    Все зависимости лежат в app.state, глобального состояния нет.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    engine = make_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    session_factory = make_session_factory(engine)
    pwd_context = make_crypt_context(settings.bcrypt_rounds)

    with session_factory() as db:
        ensure_default_admin(db, pwd_context, settings)

    app = FastAPI(title="Student Registration")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.pwd_context = pwd_context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(auth_router.router)
    app.include_router(students_router.router)
    return app


if __name__ == "__main__":
    import uvicorn
    s = get_settings()
    uvicorn.run("stureg.main:create_app", factory=True, host=s.host, port=s.port)
