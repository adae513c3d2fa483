"""
렌더링 리소스

- 렌더 생성 (sync/async 모드, 요청별 override)
- 렌더 상태 조회
- 완료까지 폴링 (RenderPoller 상태 머신)
- 생성 후 완료 대기 (create_and_wait)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from .errors import ErrorKind, QalibError
from .transport import SYNC_HEADER, Transport, parse_model, unwrap_data
from .types import Render, RenderMode, RenderStatus, resolve_mode
from .validation import require_id, validate_poll_options, validate_variables

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0  # 초
DEFAULT_POLL_TIMEOUT = 60.0  # 초

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]
PollCallback = Callable[[Render], None]


class PollState(str, Enum):
    """폴링 상태

    PENDING/PROCESSING은 계속 폴링, 나머지는 종료 상태.
    TIMED_OUT/TRANSPORT_ERROR는 서버 상태가 아닌 폴링 자체의 종료 결과.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    TRANSPORT_ERROR = "transport_error"

    @property
    def is_terminal(self) -> bool:
        return self not in (PollState.PENDING, PollState.PROCESSING)


def _observe(render: Render) -> PollState:
    """스냅샷의 status만으로 다음 상태 결정 (알 수 없는 값은 PENDING)"""
    if render.status == RenderStatus.COMPLETED.value:
        return PollState.COMPLETED
    if render.status == RenderStatus.FAILED.value:
        return PollState.FAILED
    if render.status == RenderStatus.PROCESSING.value:
        return PollState.PROCESSING
    return PollState.PENDING


class RenderPoller:
    """렌더 완료 폴링 상태 머신

    매 조회 전에 마감 시간을 먼저 확인하므로 예산이 소진된 뒤에는
    조회를 보내지 않습니다. 반복 횟수 제한은 없고 경과 시간만 제한합니다.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[Render]],
        render_id: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        on_poll: PollCallback | None = None,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ):
        """
        Args:
            fetch: 상태 조회 코루틴 (Renders.get)
            render_id: 렌더 ID
            interval: 조회 간 최소 간격 (초)
            timeout: 첫 조회부터의 최대 대기 시간 (초)
            on_poll: 조회마다 호출되는 콜백
            clock: 단조 시계 (기본: 이벤트 루프 time)
            sleep: 대기 코루틴 (기본: asyncio.sleep)
        """
        self._fetch = fetch
        self.render_id = render_id
        self.interval = interval
        self.timeout = timeout
        self._on_poll = on_poll
        self._clock = clock
        self._sleep = sleep or asyncio.sleep

        self.state = PollState.PENDING
        self.attempts = 0
        self.last_render: Render | None = None

    def _timeout_error(self) -> QalibError:
        return QalibError(
            ErrorKind.TIMEOUT,
            f"Render did not complete within {self.timeout:g}s",
            details={
                "renderId": self.render_id,
                "timeout": self.timeout,
                "attempts": self.attempts,
            },
        )

    def _failure_error(self, render: Render) -> QalibError:
        return QalibError(
            ErrorKind.RENDER_FAILED,
            render.error_message or "Render failed",
            details={
                "renderId": self.render_id,
                "render": render.model_dump(by_alias=True),
            },
        )

    async def run(self) -> Render:
        """종료 상태까지 폴링

        Returns:
            Render: completed 상태 스냅샷

        Raises:
            QalibError: TIMEOUT (예산 소진), RENDER_FAILED (서버 실패),
                또는 조회 중 발생한 전송/API 에러 (재시도 없음)
        """
        clock = self._clock or asyncio.get_running_loop().time
        started = clock()

        while True:
            # 1. 마감 확인 (조회 전)
            if clock() - started >= self.timeout:
                self.state = PollState.TIMED_OUT
                logger.warning(
                    f"[Renders] 폴링 타임아웃: {self.render_id} "
                    f"({self.timeout:g}s, {self.attempts}회 조회)"
                )
                raise self._timeout_error()

            # 2. 상태 조회
            try:
                render = await self._fetch(self.render_id)
            except QalibError:
                self.state = PollState.TRANSPORT_ERROR
                raise

            self.attempts += 1
            self.last_render = render
            self.state = _observe(render)
            logger.debug(
                f"[Renders] 폴링 #{self.attempts}: {self.render_id} → {render.status}"
            )

            if self._on_poll:
                self._on_poll(render)

            # 3. 종료 상태 처리
            if self.state == PollState.COMPLETED:
                logger.info(f"[Renders] 렌더 완료: {self.render_id}")
                return render

            if self.state == PollState.FAILED:
                logger.error(
                    f"[Renders] 렌더 실패: {self.render_id} - {render.error_message}"
                )
                raise self._failure_error(render)

            # 4. pending/processing → 대기 후 재조회
            await self._sleep(self.interval)


class Renders:
    """렌더링 리소스"""

    def __init__(
        self,
        transport: Transport,
        default_mode: RenderMode | str = RenderMode.ASYNC,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ):
        self.transport = transport
        self.default_mode = self.resolve(None, default_mode)
        self._clock = clock
        self._sleep = sleep

    @staticmethod
    def resolve(
        mode: RenderMode | str | None, default: RenderMode | str
    ) -> RenderMode:
        """resolve_mode 래퍼 (잘못된 값은 VALIDATION 에러)"""
        try:
            return resolve_mode(mode, default)
        except ValueError as e:
            raise QalibError(
                ErrorKind.VALIDATION, 'mode must be either "sync" or "async"'
            ) from e

    async def create(
        self,
        template_id: str,
        variables: list[Any],
        mode: RenderMode | str | None = None,
    ) -> Render:
        """렌더 생성

        Args:
            template_id: 템플릿 ID
            variables: 변수 목록 (dict 또는 변수 모델)
            mode: 이 요청에만 적용할 모드 (None 또는 빈 값이면 클라이언트 기본값)

        Returns:
            Render: sync 모드면 completed/failed, async 모드면 pending 스냅샷

        Raises:
            QalibError: 사전 검증 실패 또는 API 에러
        """
        require_id(template_id, "Template ID")
        payload_variables = validate_variables(variables)
        effective_mode = self.resolve(mode, self.default_mode)

        headers = {SYNC_HEADER: "true"} if effective_mode == RenderMode.SYNC else None

        logger.info(
            f"[Renders] 렌더 요청: template={template_id}, "
            f"variables={len(payload_variables)}, mode={effective_mode.value}"
        )

        body = await self.transport.post(
            "/render",
            json={"template": template_id, "variables": payload_variables},
            headers=headers,
        )
        render = parse_model(Render, unwrap_data(body))

        logger.info(f"[Renders] 렌더 생성됨: {render.id} ({render.status})")
        return render

    async def get(self, render_id: str) -> Render:
        """렌더 상태 조회

        Args:
            render_id: 렌더 ID

        Returns:
            Render: 최신 스냅샷
        """
        require_id(render_id, "Render ID")
        body = await self.transport.get(f"/render/{render_id}")
        return parse_model(Render, unwrap_data(body))

    async def wait_for(
        self,
        render_id: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        on_poll: PollCallback | None = None,
    ) -> Render:
        """렌더 완료까지 대기

        Args:
            render_id: 렌더 ID
            interval: 폴링 주기 (초)
            timeout: 최대 대기 시간 (초)
            on_poll: 조회마다 호출되는 콜백

        Returns:
            Render: completed 스냅샷

        Raises:
            QalibError: TIMEOUT, RENDER_FAILED, 또는 조회 중 API 에러
        """
        require_id(render_id, "Render ID")
        interval, timeout = validate_poll_options(interval, timeout)

        poller = RenderPoller(
            self.get,
            render_id,
            interval=interval,
            timeout=timeout,
            on_poll=on_poll,
            clock=self._clock,
            sleep=self._sleep,
        )
        return await poller.run()

    async def create_and_wait(
        self,
        template_id: str,
        variables: list[Any],
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        mode: RenderMode | str | None = None,
        on_poll: PollCallback | None = None,
    ) -> Render:
        """렌더 생성 후 완료까지 대기

        클라이언트 기본 모드나 mode 인자와 관계없이 항상 async로 제출합니다.
        """
        if mode and mode != RenderMode.ASYNC:
            logger.debug(f"[Renders] create_and_wait: mode={mode} 무시, async로 제출")

        validate_poll_options(interval, timeout)

        render = await self.create(template_id, variables, mode=RenderMode.ASYNC)
        return await self.wait_for(
            render.id, interval=interval, timeout=timeout, on_poll=on_poll
        )
