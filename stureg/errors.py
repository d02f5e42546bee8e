from typing import Optional


class AppError(Exception):
    """Ошибка, которую можно показать клиенту как {"success": false, "message": ...}."""

    status_code = 500
    message = "服务器错误，请稍后重试"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    message = "请求无效"


class DuplicateKey(AppError):
    status_code = 400

    MESSAGES = {
        "studentId": "该学号已提交过信息",
        "idCard": "该身份证号已提交过信息",
    }

    def __init__(self, field: str):
        self.field = field
        super().__init__(self.MESSAGES.get(field, "该信息已提交过"))


class WeakPassword(AppError):
    status_code = 400
    message = "新密码长度不能少于6位"


class InvalidCredentials(AppError):
    status_code = 401
    message = "用户名或密码错误"


class InvalidToken(AppError):
    status_code = 401
    message = "令牌无效或已过期"


class NotFound(AppError):
    status_code = 404
    message = "未找到"


class StorageError(AppError):
    status_code = 500
    message = "提交失败，请稍后重试"
