"""
Qalib API 클라이언트 (비동기)

렌더링/템플릿 리소스를 하나의 진입점으로 묶는 파사드:
- 클라이언트 단위 기본 모드 (sync/async) + 요청별 override
- create_and_wait: async 제출 후 완료까지 대기
- 헬스 체크
"""

import logging
from typing import Any

import httpx

from . import __version__
from .config import ClientConfig
from .renders import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    PollCallback,
    Renders,
)
from .templates import DEFAULT_PAGE_LIMIT, Templates
from .transport import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, Transport, parse_model
from .types import HealthStatus, Render, RenderMode, Template, TemplateList

logger = logging.getLogger(__name__)


class Qalib:
    """비동기 Qalib API 클라이언트

    사용 예시:
        ```python
        qalib = Qalib(api_key="qk_live_...", mode="sync")
        render = await qalib.render_image("tmp_abc123", [
            {"name": "title", "text": "Hello World"},
        ])
        ```
    """

    version = __version__

    def __init__(
        self,
        api_key: str,
        mode: RenderMode | str = RenderMode.ASYNC,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            api_key: Qalib API 키 ("qk_"로 시작)
            mode: 기본 렌더링 모드
            base_url: API base URL
            timeout: 요청 타임아웃 (초)
            transport: httpx 전송 계층 (테스트용 MockTransport 등)

        Raises:
            QalibError: API 키 누락/형식 오류 (AUTHENTICATION), 잘못된 모드 (VALIDATION)
        """
        self._transport = Transport(
            api_key, base_url=base_url, timeout=timeout, transport=transport
        )
        self.renders = Renders(self._transport, default_mode=mode)
        self.templates = Templates(self._transport)

        logger.debug(
            f"[Qalib] 클라이언트 초기화: base_url={self._transport.base_url}, "
            f"mode={self.mode.value}"
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "Qalib":
        """ClientConfig로부터 클라이언트 생성"""
        return cls(
            config.api_key,
            mode=config.mode,
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "Qalib":
        """환경변수 설정으로 클라이언트 생성"""
        return cls.from_config(ClientConfig.from_env())

    # 모드

    @property
    def mode(self) -> RenderMode:
        """현재 기본 모드"""
        return self.renders.default_mode

    @mode.setter
    def mode(self, mode: RenderMode | str) -> None:
        self.set_mode(mode)

    def set_mode(self, mode: RenderMode | str) -> None:
        """기본 모드 변경

        프로세스 전역 설정으로 취급되며 동시 변경은 호출자 책임입니다.
        None이나 빈 문자열을 포함해 sync/async 외의 값은 VALIDATION 에러.
        """
        self.renders.default_mode = Renders.resolve(mode, mode)

    # 렌더링

    async def render_image(
        self,
        template_id: str,
        variables: list[Any],
        mode: RenderMode | str | None = None,
    ) -> Render:
        """템플릿으로 이미지 렌더링 (Renders.create)"""
        return await self.renders.create(template_id, variables, mode=mode)

    async def get_render(self, render_id: str) -> Render:
        """렌더 상태 조회 (Renders.get)"""
        return await self.renders.get(render_id)

    async def wait_for(
        self,
        render_id: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        on_poll: PollCallback | None = None,
    ) -> Render:
        """렌더 완료까지 대기 (Renders.wait_for)"""
        return await self.renders.wait_for(
            render_id, interval=interval, timeout=timeout, on_poll=on_poll
        )

    async def create_and_wait(
        self,
        template_id: str,
        variables: list[Any],
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        mode: RenderMode | str | None = None,
        on_poll: PollCallback | None = None,
    ) -> Render:
        """async 제출 후 완료까지 대기 (Renders.create_and_wait)"""
        return await self.renders.create_and_wait(
            template_id,
            variables,
            interval=interval,
            timeout=timeout,
            mode=mode,
            on_poll=on_poll,
        )

    # 템플릿

    async def list_templates(
        self, limit: int = DEFAULT_PAGE_LIMIT, offset: int = 0
    ) -> TemplateList:
        return await self.templates.list(limit=limit, offset=offset)

    async def get_template(self, template_id: str) -> Template:
        return await self.templates.get(template_id)

    async def list_all_templates(self, max_results: int | None = None) -> list[Template]:
        return await self.templates.list_all(max_results=max_results)

    # 헬스

    async def health(self) -> HealthStatus:
        """API 헬스 체크

        Returns:
            HealthStatus: 서버 상태

        Raises:
            QalibError: 서버 연결 실패 또는 non-2xx 응답
        """
        body = await self._transport.get("/health")
        return parse_model(HealthStatus, body)
