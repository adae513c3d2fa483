"""
Qalib 전송 계층 테스트

httpx.MockTransport로 실제 서버 없이 요청/응답 변환을 검증합니다.
"""

import datetime
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

import qalib
from qalib.errors import ErrorKind, QalibError
from qalib.transport import DEFAULT_BASE_URL, Transport, parse_model, unwrap_data
from qalib.types import Render
from tests.sample_data import API_KEY, BASE_URL, generate_render


class TestTransportInit:
    """Transport 초기화 테스트"""

    def test_init_default(self):
        """기본값으로 초기화"""
        transport = Transport(API_KEY)

        assert transport.base_url == DEFAULT_BASE_URL
        assert transport.timeout == 30.0

    @pytest.mark.parametrize("api_key", ["", None])
    def test_missing_api_key(self, api_key):
        """API 키 누락은 AUTHENTICATION"""
        with pytest.raises(QalibError) as exc_info:
            Transport(api_key)

        assert exc_info.value.kind == ErrorKind.AUTHENTICATION
        assert exc_info.value.message == "API key is required"

    def test_malformed_api_key(self):
        """접두사가 틀린 API 키는 AUTHENTICATION"""
        with pytest.raises(QalibError, match='must start with "qk_"') as exc_info:
            Transport("sk_live_123")

        assert exc_info.value.kind == ErrorKind.AUTHENTICATION

    def test_create_client_headers(self):
        """인증/User-Agent 헤더 설정"""
        transport = Transport(API_KEY, base_url=BASE_URL, timeout=12.5)
        http_client = transport._create_client()

        assert http_client.base_url == httpx.URL(BASE_URL + "/")
        assert http_client.headers["Authorization"] == f"Bearer {API_KEY}"
        assert http_client.headers["Content-Type"] == "application/json"
        assert http_client.headers["User-Agent"] == f"qalib-python/{qalib.__version__}"
        assert http_client.timeout.read == 12.5


class TestTransportRequest:
    """Transport.request 테스트"""

    @pytest.mark.asyncio
    async def test_success_returns_decoded_body(self, server, transport):
        """2xx 응답은 디코딩된 본문 반환"""
        server.add("GET", "/health", httpx.Response(200, json={"status": "ok"}))

        body = await transport.get("/health")

        assert body == {"status": "ok"}
        request = server.requests[0]
        assert request.url.path == "/v1/health"
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"

    @pytest.mark.asyncio
    async def test_post_sends_json_and_headers(self, server, transport):
        """POST 본문과 요청별 헤더 전송"""
        server.add("POST", "/render", httpx.Response(201, json={"ok": True}))

        await transport.post("/render", json={"template": "t"}, headers={"X-Sync": "true"})

        request = server.requests[0]
        assert request.method == "POST"
        assert request.headers["X-Sync"] == "true"
        assert json.loads(request.content) == {"template": "t"}

    @pytest.mark.asyncio
    async def test_query_params(self, server, transport):
        """쿼리 파라미터 전송"""
        server.add("GET", "/templates", httpx.Response(200, json={}))

        await transport.get("/templates", params={"limit": 10, "offset": 20})

        params = server.requests[0].url.params
        assert params["limit"] == "10"
        assert params["offset"] == "20"

    @pytest.mark.asyncio
    async def test_http_error_translated(self, server, transport):
        """non-2xx 응답은 QalibError"""
        server.add(
            "GET",
            "/render",
            httpx.Response(404, json={"message": "Render not found", "code": "X"}),
        )

        with pytest.raises(QalibError) as exc_info:
            await transport.get("/render/missing")

        error = exc_info.value
        assert error.kind == ErrorKind.NOT_FOUND
        assert error.status_code == 404
        assert error.message == "Render not found"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, server, transport):
        """JSON이 아닌 에러 본문은 기본 메시지"""
        server.add("GET", "/health", httpx.Response(502, text="<html>Bad Gateway</html>"))

        with pytest.raises(QalibError) as exc_info:
            await transport.get("/health")

        error = exc_info.value
        assert error.kind == ErrorKind.API
        assert error.status_code == 502
        assert error.message == "Unknown error occurred"

    @pytest.mark.asyncio
    async def test_connection_error(self, server, transport):
        """연결 실패는 NETWORK_ERROR (원본 예외 체인 유지)"""
        server.add("GET", "/health", httpx.ConnectError("Connection refused"))

        with pytest.raises(QalibError) as exc_info:
            await transport.get("/health")

        error = exc_info.value
        assert error.kind == ErrorKind.API
        assert error.code == "NETWORK_ERROR"
        assert error.status_code == 500
        assert isinstance(error.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_read_timeout(self, server, transport):
        """읽기 타임아웃은 TIMEOUT"""
        server.add("GET", "/health", httpx.ReadTimeout("timed out"))

        with pytest.raises(QalibError) as exc_info:
            await transport.get("/health")

        assert exc_info.value.kind == ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_empty_success_body(self, server, transport):
        """빈 2xx 본문은 None"""
        server.add("GET", "/health", httpx.Response(204))

        assert await transport.get("/health") is None

    @pytest.mark.asyncio
    async def test_with_patched_client(self):
        """_create_client 패치로 HTTP 클라이언트 대체"""
        transport = Transport(API_KEY, base_url=BASE_URL)
        response = httpx.Response(200, json={"status": "ok"})

        with patch.object(transport, "_create_client") as mock_create:
            mock_http_client = AsyncMock()
            mock_http_client.build_request = MagicMock(return_value="built-request")
            mock_http_client.send = AsyncMock(return_value=response)
            mock_http_client.__aenter__ = AsyncMock(return_value=mock_http_client)
            mock_http_client.__aexit__ = AsyncMock(return_value=None)
            mock_create.return_value = mock_http_client

            body = await transport.get("/health")

            assert body == {"status": "ok"}
            mock_http_client.build_request.assert_called_once_with(
                "GET", "/health", json=None, params=None, headers=None
            )
            mock_http_client.send.assert_awaited_once_with("built-request")

    @pytest.mark.asyncio
    async def test_unserializable_body(self, server, transport):
        """JSON으로 변환할 수 없는 본문은 요청 없이 VALIDATION"""
        with pytest.raises(QalibError) as exc_info:
            await transport.post("/render", json={"when": datetime.date(2026, 10, 19)})

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert "JSON serializable" in exc_info.value.message
        assert server.requests == []


class TestResponseHelpers:
    """응답 헬퍼 테스트"""

    def test_unwrap_data(self):
        assert unwrap_data({"status": "success", "data": {"id": "x"}}) == {"id": "x"}
        assert unwrap_data({"id": "x"}) == {"id": "x"}
        assert unwrap_data(None) is None

    def test_parse_model(self):
        render = parse_model(Render, generate_render("completed"))

        assert render.is_completed

    def test_parse_model_invalid_response(self):
        """문서화된 형태가 아니면 INVALID_RESPONSE"""
        with pytest.raises(QalibError) as exc_info:
            parse_model(Render, {"status": "pending"})

        error = exc_info.value
        assert error.kind == ErrorKind.API
        assert error.code == "INVALID_RESPONSE"
