"""
공용 타입 정의

Qalib 렌더링/템플릿 관련 Enum, Pydantic 모델.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RenderMode(str, Enum):
    """렌더링 모드"""

    SYNC = "sync"  # 서버가 같은 응답에서 completed/failed 반환
    ASYNC = "async"  # pending 반환 후 폴링


class RenderStatus(str, Enum):
    """렌더링 작업 상태 (서버 할당)"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (RenderStatus.COMPLETED, RenderStatus.FAILED)


def resolve_mode(
    call_override: RenderMode | str | None,
    client_default: RenderMode | str,
) -> RenderMode:
    """요청별 유효 모드 결정

    Args:
        call_override: 호출 시 지정한 모드 (None 또는 빈 문자열이면 미지정)
        client_default: 클라이언트 기본 모드

    Returns:
        RenderMode: override가 있으면 override, 없으면 기본값

    Raises:
        ValueError: 알 수 없는 모드 문자열
    """
    if call_override:
        return RenderMode(call_override)
    return RenderMode(client_default)


class TextVariable(BaseModel):
    """텍스트 변수 (선택적 스타일 포함)"""

    name: str
    text: str
    color: str | None = None
    backgroundColor: str | None = None
    backgroundHorizontalPadding: int | None = Field(default=None, ge=0, le=100)
    backgroundVerticalPadding: int | None = Field(default=None, ge=0, le=100)


class ImageVariable(BaseModel):
    """이미지 변수"""

    name: str
    image_url: str


class RatingVariable(BaseModel):
    """별점 변수 (0~5)"""

    name: str
    rating: float = Field(..., ge=0, le=5)


Variable = TextVariable | ImageVariable | RatingVariable


class Render(BaseModel):
    """렌더링 작업 스냅샷

    서버 조회 결과 하나에 대응하는 불변 객체. status만이 종료 여부를 결정하며,
    status가 종료 상태가 아닐 때 결과/실패 필드는 무시합니다.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str
    status: str
    self_url: str | None = Field(default=None, alias="self")
    template_id: str | None = None
    variables_used: dict[str, Any] | None = None
    requested_at: str | None = None

    # completed
    image_url: str | None = None
    render_time_ms: int | None = None
    completed_at: str | None = None

    # failed
    error_message: str | None = None
    failed_at: str | None = None

    # processing
    started_at: str | None = None

    # 크레딧
    credits_deducted: float | None = None
    remaining_credits: float | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == RenderStatus.COMPLETED.value

    @property
    def is_failed(self) -> bool:
        return self.status == RenderStatus.FAILED.value

    @property
    def is_terminal(self) -> bool:
        """completed 또는 failed 여부"""
        return self.is_completed or self.is_failed


class Template(BaseModel):
    """템플릿 메타데이터"""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str
    description: str | None = None
    width: int
    height: int
    created_at: str | None = None


class Pagination(BaseModel):
    """페이지네이션 정보"""

    model_config = ConfigDict(frozen=True, extra="allow")

    limit: int
    offset: int
    count: int


class TemplateList(BaseModel):
    """템플릿 목록 응답"""

    model_config = ConfigDict(frozen=True, extra="allow")

    status: str | None = None
    data: list[Template] = Field(default_factory=list)
    pagination: Pagination


class HealthStatus(BaseModel):
    """헬스체크 응답"""

    model_config = ConfigDict(frozen=True, extra="allow")

    status: str
    message: str | None = None
    timestamp: str | None = None
    version: str | None = None
