"""
Custom Exceptions
서비스 전용 예외 클래스 정의
"""
from typing import Optional, Dict, Any


class MonetizationEngineException(Exception):
    """Base exception for the monetization engine"""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details
            }
        }


# ===========================================
# Validation Errors (2000)
# ===========================================
class ValidationError(MonetizationEngineException):
    """Input validation error"""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        details = dict(details or {})
        if field is not None:
            details["field"] = field
        super().__init__(
            message=message,
            code="2001-001",
            status_code=400,
            details=details
        )
        self.field = field


class ThemeNotFoundError(MonetizationEngineException):
    """Theme not found in the record store"""

    def __init__(self, theme_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__(
            message=message or f"테마를 찾을 수 없습니다: '{theme_id}'",
            code="2001-002",
            status_code=404,
            details={"theme_id": theme_id}
        )


# ===========================================
# Store Errors (4000)
# ===========================================
class StoreError(MonetizationEngineException):
    """Record store (theme / trend / history) operation failed"""

    def __init__(self, message: str = "데이터 저장소 오류가 발생했습니다.", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="4001-001",
            status_code=500,
            details=details
        )

