"""
요청 사전 검증

네트워크 호출 전에 인자를 검증하고, 실패 시 VALIDATION 종류의
QalibError를 발생시킵니다. 상태 없는 순수 함수만 포함합니다.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

from .errors import ErrorKind, QalibError

# 변수 하나가 가져야 하는 값 필드 (정확히 하나)
VALUE_FIELDS = ("text", "image_url", "rating")

RATING_MIN = 0
RATING_MAX = 5
PADDING_FIELDS = ("backgroundHorizontalPadding", "backgroundVerticalPadding")
PADDING_MAX = 100
STYLE_FIELDS = ("color", "backgroundColor")

MAX_PAGE_LIMIT = 100


def _fail(message: str, details: dict[str, Any] | None = None) -> QalibError:
    return QalibError(ErrorKind.VALIDATION, message, details=details)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def require_id(value: Any, label: str) -> str:
    """비어 있지 않은 식별자 문자열 확인

    Args:
        value: 검사할 값
        label: 에러 메시지용 이름 (예: "Template ID")

    Returns:
        검증된 식별자

    Raises:
        QalibError: 빈 값 또는 문자열이 아닌 경우
    """
    if not isinstance(value, str) or not value.strip():
        raise _fail(f"{label} is required")
    return value


def validate_variable(variable: Any, index: int) -> dict[str, Any]:
    """변수 하나 검증 후 요청용 dict로 변환

    Args:
        variable: dict 또는 TextVariable/ImageVariable/RatingVariable
        index: 변수 목록 내 위치 (에러 details용)

    Returns:
        None 값이 제거된 변수 dict

    Raises:
        QalibError: 이름 누락, 값 필드 누락/중복, 범위 초과, 문자열이 아닌 색상
    """
    if isinstance(variable, BaseModel):
        variable = variable.model_dump(exclude_none=True)

    if not isinstance(variable, Mapping):
        raise _fail(
            "Each variable must be an object with a name property",
            {"index": index},
        )

    name = variable.get("name")
    if not isinstance(name, str) or not name.strip():
        raise _fail("Each variable must have a name property", {"index": index})

    present = [f for f in VALUE_FIELDS if variable.get(f) is not None]
    if not present:
        raise _fail(
            f'Variable "{name}" must have either text, image_url, or rating property',
            {"index": index, "name": name},
        )
    if len(present) > 1:
        raise _fail(
            f'Variable "{name}" must have only one of text, image_url, or rating',
            {"index": index, "name": name, "fields": present},
        )

    value_field = present[0]
    value = variable[value_field]

    if value_field == "rating":
        if not _is_number(value) or not RATING_MIN <= value <= RATING_MAX:
            raise _fail(
                f'Variable "{name}" rating must be a number between '
                f"{RATING_MIN} and {RATING_MAX}",
                {"index": index, "name": name, "rating": value},
            )
    elif not isinstance(value, str) or not value:
        raise _fail(
            f'Variable "{name}" {value_field} must be a non-empty string',
            {"index": index, "name": name},
        )

    if value_field == "text":
        for padding_field in PADDING_FIELDS:
            padding = variable.get(padding_field)
            if padding is None:
                continue
            if not _is_number(padding) or not 0 <= padding <= PADDING_MAX:
                raise _fail(
                    f'Variable "{name}" {padding_field} must be between 0 and {PADDING_MAX}',
                    {"index": index, "name": name, padding_field: padding},
                )

        for style_field in STYLE_FIELDS:
            style = variable.get(style_field)
            if style is not None and not isinstance(style, str):
                raise _fail(
                    f'Variable "{name}" {style_field} must be a string',
                    {"index": index, "name": name, "field": style_field},
                )

    return {k: v for k, v in variable.items() if v is not None}


def validate_variables(variables: Any) -> list[dict[str, Any]]:
    """변수 목록 검증

    Args:
        variables: 비어 있지 않은 변수 시퀀스 (순서 유지)

    Returns:
        요청 본문에 그대로 사용할 변수 dict 목록

    Raises:
        QalibError: 목록이 비었거나 변수 하나라도 잘못된 경우
    """
    if (
        isinstance(variables, (str, bytes, Mapping))
        or not isinstance(variables, Sequence)
        or len(variables) == 0
    ):
        raise _fail("Variables must be a non-empty list")

    return [validate_variable(v, i) for i, v in enumerate(variables)]


def validate_page(limit: Any, offset: Any) -> tuple[int, int]:
    """템플릿 목록 페이지 인자 검증

    Raises:
        QalibError: limit이 1~100 범위 밖이거나 offset이 음수인 경우
    """
    if not isinstance(limit, int) or isinstance(limit, bool):
        raise _fail("Limit must be an integer")
    if not isinstance(offset, int) or isinstance(offset, bool):
        raise _fail("Offset must be an integer")
    if limit > MAX_PAGE_LIMIT:
        raise _fail(f"Limit cannot exceed {MAX_PAGE_LIMIT}")
    if limit < 1:
        raise _fail("Limit must be at least 1")
    if offset < 0:
        raise _fail("Offset cannot be negative")
    return limit, offset


def validate_poll_options(interval: Any, timeout: Any) -> tuple[float, float]:
    """폴링 주기/타임아웃 검증 (초 단위, 모두 0보다 커야 함)"""
    if not _is_number(interval) or interval <= 0:
        raise _fail("Polling interval must be greater than 0", {"interval": interval})
    if not _is_number(timeout) or timeout <= 0:
        raise _fail("Polling timeout must be greater than 0", {"timeout": timeout})
    return float(interval), float(timeout)
