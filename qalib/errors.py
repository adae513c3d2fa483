"""
에러 분류 시스템

Qalib API 실패를 하나의 닫힌 에러 분류(ErrorKind)로 변환하고,
재시도 가능 여부를 판단하여 호출자 재시도 로직에 활용.
"""

from enum import Enum
from typing import Any

import httpx


class ErrorKind(str, Enum):
    """도메인 에러 종류"""

    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    RENDER_FAILED = "render_failed"
    API = "api"


class ErrorCategory(str, Enum):
    """에러 카테고리"""

    RETRYABLE = "retryable"  # 네트워크 오류, 일시적 장애
    NON_RETRYABLE = "non_retryable"  # 인증 오류, 잘못된 요청
    UNKNOWN = "unknown"


# 종류별 기본값: (status_code, code, message)
ERROR_DEFAULTS: dict[ErrorKind, tuple[int, str, str]] = {
    ErrorKind.AUTHENTICATION: (401, "AUTHENTICATION_ERROR", "Invalid or missing API key"),
    ErrorKind.VALIDATION: (400, "VALIDATION_ERROR", "Invalid request data"),
    ErrorKind.INSUFFICIENT_CREDITS: (402, "INSUFFICIENT_CREDITS", "Insufficient credits"),
    ErrorKind.NOT_FOUND: (404, "NOT_FOUND", "Resource not found"),
    ErrorKind.FORBIDDEN: (403, "FORBIDDEN", "Access denied"),
    ErrorKind.RATE_LIMIT: (429, "RATE_LIMIT_EXCEEDED", "Rate limit exceeded"),
    ErrorKind.TIMEOUT: (408, "TIMEOUT_ERROR", "Request timeout"),
    ErrorKind.RENDER_FAILED: (500, "RENDER_ERROR", "Render operation failed"),
    ErrorKind.API: (500, "API_ERROR", "API request failed"),
}

# HTTP 상태 코드 → 에러 종류 (나머지 non-2xx는 API)
STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    402: ErrorKind.INSUFFICIENT_CREDITS,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMIT,
}

# 응답 없는 전송 실패에 사용하는 상태 코드
NETWORK_ERROR_STATUS = 500
NETWORK_ERROR_CODE = "NETWORK_ERROR"

FALLBACK_MESSAGE = "Unknown error occurred"
FALLBACK_CODE = "UNKNOWN_ERROR"


class QalibError(Exception):
    """Qalib 도메인 에러

    HTTP 상태별 클래스 계층 대신 ErrorKind 태그 하나로 구분합니다.
    호출자는 message 대신 kind 또는 code로 분기해야 합니다.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        default_status, default_code, default_message = ERROR_DEFAULTS[kind]
        self.kind = kind
        self.message = message or default_message
        self.status_code = default_status if status_code is None else status_code
        self.code = code or default_code
        self.details = details
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"QalibError(kind={self.kind.value!r}, status_code={self.status_code}, "
            f"code={self.code!r}, message={self.message!r})"
        )


def _extract_fields(body: Any) -> tuple[str, str, dict[str, Any] | None]:
    """에러 응답 본문에서 (message, code, details) 추출

    본문이 dict가 아니거나 필드가 잘못된 타입이면 기본값으로 대체합니다.
    """
    if not isinstance(body, dict):
        return FALLBACK_MESSAGE, FALLBACK_CODE, None

    message = body.get("message") or body.get("error")
    if not isinstance(message, str) or not message:
        message = FALLBACK_MESSAGE

    code = body.get("code")
    if not isinstance(code, str) or not code:
        code = FALLBACK_CODE

    details = body.get("details")
    if not isinstance(details, dict):
        details = None

    return message, code, details


def translate_response(status_code: int, body: Any) -> Any:
    """HTTP 응답을 성공 값 또는 QalibError로 변환

    Args:
        status_code: HTTP 상태 코드
        body: 디코딩된 응답 본문 (JSON 파싱 실패 시 텍스트 또는 None)

    Returns:
        2xx인 경우 본문 그대로

    Raises:
        QalibError: non-2xx 응답
    """
    if 200 <= status_code < 300:
        return body

    raise error_from_response(status_code, body)


def error_from_response(status_code: int, body: Any) -> QalibError:
    """non-2xx 응답에 대응하는 QalibError 생성 (예외를 던지지 않음)"""
    message, code, details = _extract_fields(body)
    kind = STATUS_KINDS.get(status_code)

    if kind is None:
        return QalibError(ErrorKind.API, message, status_code, code, details)

    if kind == ErrorKind.INSUFFICIENT_CREDITS:
        credit_info: dict[str, Any] = {}
        if isinstance(body, dict):
            credit_info = {
                "creditBalance": body.get("creditBalance"),
                "requiredCredits": body.get("requiredCredits"),
            }
        details = {**credit_info, **(details or {})}

    # 종류별 code는 고정 (본문 code와 무관하게 안정적인 분기 보장)
    return QalibError(kind, message, status_code, details=details)


def translate_transport_error(error: Exception) -> QalibError:
    """응답을 받지 못한 전송 실패를 QalibError로 변환

    Args:
        error: httpx 전송 예외

    Returns:
        QalibError: 타임아웃이면 TIMEOUT, 그 외는 NETWORK_ERROR
    """
    if isinstance(error, httpx.TimeoutException):
        return QalibError(ErrorKind.TIMEOUT, "Request timeout")

    return QalibError(
        ErrorKind.API,
        str(error) or "Network error occurred",
        NETWORK_ERROR_STATUS,
        NETWORK_ERROR_CODE,
    )


class ErrorClassifier:
    """에러 분류기"""

    @classmethod
    def classify(cls, error: Exception) -> ErrorCategory:
        """에러를 분류하여 카테고리 반환

        Args:
            error: 분류할 예외 객체

        Returns:
            ErrorCategory: 재시도 가능 여부에 따른 카테고리
        """
        if not isinstance(error, QalibError):
            return ErrorCategory.UNKNOWN

        if error.kind in (ErrorKind.TIMEOUT, ErrorKind.RATE_LIMIT):
            return ErrorCategory.RETRYABLE

        if error.kind == ErrorKind.API and (
            error.code == NETWORK_ERROR_CODE or error.status_code >= 500
        ):
            return ErrorCategory.RETRYABLE

        return ErrorCategory.NON_RETRYABLE

    @classmethod
    def format_message(cls, error: Exception) -> str:
        """에러 메시지 포맷팅

        Args:
            error: 포맷팅할 예외 객체

        Returns:
            str: 카테고리 라벨이 포함된 에러 메시지
        """
        category = cls.classify(error)
        label = {
            ErrorCategory.RETRYABLE: "[재시도 가능]",
            ErrorCategory.NON_RETRYABLE: "[재시도 불가]",
            ErrorCategory.UNKNOWN: "[분류되지 않음]",
        }

        if isinstance(error, QalibError):
            return f"{label[category]} {error.code} ({error.status_code}): {error.message}"

        return f"{label[category]} {type(error).__name__}: {str(error)}"
