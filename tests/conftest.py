"""
Pytest 설정 및 공통 Fixture
"""

from typing import Any

import httpx
import pytest

from qalib.client import Qalib
from qalib.renders import Renders
from qalib.transport import Transport
from tests.sample_data import API_KEY, BASE_URL


class ScriptedServer:
    """순서대로 응답하는 가짜 Qalib 서버

    경로 접두사별 응답 큐를 가지며, 큐의 마지막 응답은 계속 반복됩니다.
    모든 요청은 requests에 기록됩니다.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: list[tuple[str, str, list[Any]]] = []

    def add(self, method: str, path_prefix: str, *replies: Any) -> "ScriptedServer":
        self._routes.append((method, path_prefix, list(replies)))
        return self

    def count(self, method: str, path_prefix: str = "") -> int:
        return sum(
            1
            for r in self.requests
            if r.method == method and r.url.path.startswith(_path(path_prefix))
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        for method, prefix, replies in self._routes:
            if request.method == method and request.url.path.startswith(_path(prefix)):
                reply = replies.pop(0) if len(replies) > 1 else replies[0]
                if callable(reply) and not isinstance(reply, httpx.Response):
                    reply = reply(request)
                if isinstance(reply, Exception):
                    raise reply
                return reply

        return httpx.Response(404, json={"message": "No route", "code": "NOT_FOUND"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _path(prefix: str) -> str:
    return httpx.URL(BASE_URL).path.rstrip("/") + prefix


class FakeClock:
    """수동으로 진행하는 단조 시계 + 가짜 sleep"""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def server() -> ScriptedServer:
    """테스트용 가짜 서버"""
    return ScriptedServer()


@pytest.fixture
def clock() -> FakeClock:
    """테스트용 가짜 시계"""
    return FakeClock()


@pytest.fixture
def transport(server: ScriptedServer) -> Transport:
    """가짜 서버에 연결된 Transport"""
    return Transport(API_KEY, base_url=BASE_URL, transport=server.transport)


@pytest.fixture
def renders(transport: Transport, clock: FakeClock) -> Renders:
    """가짜 시계를 사용하는 Renders (async 기본 모드)"""
    return Renders(transport, clock=clock, sleep=clock.sleep)


@pytest.fixture
def qalib(server: ScriptedServer) -> Qalib:
    """가짜 서버에 연결된 Qalib 클라이언트"""
    return Qalib(API_KEY, base_url=BASE_URL, transport=server.transport)
