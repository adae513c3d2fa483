"""
Qalib HTTP 전송 어댑터

httpx.AsyncClient 기반:
- API 키 형식 사전 검증 (네트워크 호출 전)
- Bearer 인증 / 타임아웃 / JSON 직렬화
- 전송 실패와 non-2xx 응답을 여기서 한 번만 QalibError로 변환
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from . import __version__
from .errors import ErrorKind, QalibError, error_from_response, translate_transport_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.getqalib.com/v1"
DEFAULT_TIMEOUT = 30.0
API_KEY_PREFIX = "qk_"
USER_AGENT = f"qalib-python/{__version__}"
SYNC_HEADER = "X-Sync"

ModelT = TypeVar("ModelT", bound=BaseModel)


def unwrap_data(body: Any) -> Any:
    """{"data": ...} 형태 응답이면 data만 반환"""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def parse_model(model: type[ModelT], payload: Any) -> ModelT:
    """2xx 응답 본문을 모델로 변환

    Raises:
        QalibError: 본문이 문서화된 형태와 다른 경우 (INVALID_RESPONSE)
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.error(f"[Transport] 응답 형식 오류 ({model.__name__}): {e}")
        raise QalibError(
            ErrorKind.API,
            f"Unexpected response format for {model.__name__}",
            code="INVALID_RESPONSE",
            details={"errors": e.errors(include_url=False)},
        ) from e


class Transport:
    """비동기 Qalib HTTP 전송 계층

    Note: 요청마다 httpx.AsyncClient를 새로 생성함
    (호출자별 이벤트 루프와 무관하게 동작, 커넥션 관리는 httpx에 위임)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise QalibError(ErrorKind.AUTHENTICATION, "API key is required")

        if not isinstance(api_key, str) or not api_key.startswith(API_KEY_PREFIX):
            raise QalibError(
                ErrorKind.AUTHENTICATION,
                f'Invalid API key format. API key must start with "{API_KEY_PREFIX}"',
            )

        self.api_key = api_key
        self.base_url = base_url or DEFAULT_BASE_URL
        self.timeout = timeout
        self._transport = transport

    def _create_client(self) -> httpx.AsyncClient:
        """새로운 HTTP 클라이언트 생성 (매 요청마다)"""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "User-Agent": USER_AGENT,
        }

        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        """JSON 디코딩, 실패 시 텍스트 (빈 본문은 None)"""
        try:
            return response.json()
        except ValueError:
            return response.text or None

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """HTTP 요청 전송

        Args:
            method: HTTP 메서드
            path: base_url 기준 경로
            json: 요청 본문
            params: 쿼리 파라미터
            headers: 요청별 추가 헤더

        Returns:
            디코딩된 2xx 응답 본문

        Raises:
            QalibError: 직렬화 불가 본문, 전송 실패 또는 non-2xx 응답
        """
        try:
            async with self._create_client() as client:
                try:
                    request = client.build_request(
                        method, path, json=json, params=params, headers=headers
                    )
                except (TypeError, ValueError) as e:
                    logger.error(f"[Transport] {method} {path} 요청 직렬화 실패: {e}")
                    raise QalibError(
                        ErrorKind.VALIDATION,
                        "Request body must be JSON serializable",
                        details={"reason": str(e)},
                    ) from e
                response = await client.send(request)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error = translate_transport_error(e)
            logger.error(f"[Transport] {method} {path} 전송 실패: {e!r} → {error.code}")
            raise error from e

        body = self._decode_body(response)
        if response.is_success:
            return body

        error = error_from_response(response.status_code, body)
        logger.error(
            f"[Transport] {method} {path} 실패: {response.status_code} "
            f"{error.code} - {error.message}"
        )
        raise error

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        return await self.request("POST", path, json=json, headers=headers)
