"""
클라이언트 설정

환경변수 기반 설정 관리.
"""

import logging
import os
from dataclasses import dataclass

from .renders import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT
from .transport import API_KEY_PREFIX, DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .types import RenderMode

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """설정 오류 예외"""

    pass


@dataclass
class ClientConfig:
    """Qalib 클라이언트 설정"""

    # 인증
    api_key: str = ""

    # API
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT  # 요청 타임아웃 (초)
    mode: str = RenderMode.ASYNC.value

    # 폴링 설정 (wait_for 기본값)
    poll_interval: float = DEFAULT_POLL_INTERVAL  # 초
    poll_timeout: float = DEFAULT_POLL_TIMEOUT  # 초

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """환경변수에서 설정 로드"""
        return cls(
            api_key=os.getenv("QALIB_API_KEY", ""),
            base_url=os.getenv("QALIB_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.getenv("QALIB_TIMEOUT", str(DEFAULT_TIMEOUT))),
            mode=os.getenv("QALIB_MODE", RenderMode.ASYNC.value),
            poll_interval=float(
                os.getenv("QALIB_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL))
            ),
            poll_timeout=float(
                os.getenv("QALIB_POLL_TIMEOUT", str(DEFAULT_POLL_TIMEOUT))
            ),
        )

    def validate(self, strict: bool = True) -> list[str]:
        """설정값 검증

        Args:
            strict: True면 오류 시 예외 발생, False면 로깅만

        Returns:
            list[str]: 검증 경고/오류 메시지 목록

        Raises:
            ConfigurationError: strict=True이고 오류가 있을 때
        """
        errors = []
        warnings = []

        # 필수 환경변수 검증
        if not self.api_key:
            errors.append("필수 환경변수 누락: QALIB_API_KEY")
        elif not self.api_key.startswith(API_KEY_PREFIX):
            errors.append(f"잘못된 QALIB_API_KEY 형식: '{API_KEY_PREFIX}'로 시작해야 함")

        # URL 형식 검증
        if not self.base_url.startswith("http"):
            errors.append(f"잘못된 QALIB_BASE_URL 형식: {self.base_url}")
        elif self.base_url.startswith("http://"):
            warnings.append(f"암호화되지 않은 API URL: {self.base_url}")

        # 모드 검증
        if self.mode not in (RenderMode.SYNC.value, RenderMode.ASYNC.value):
            errors.append(f"잘못된 QALIB_MODE 값: {self.mode} (sync 또는 async)")

        # 숫자값 범위 검증
        if self.timeout <= 0:
            errors.append(f"잘못된 요청 타임아웃: {self.timeout}초")
        if self.poll_interval <= 0:
            errors.append(f"폴링 간격이 너무 짧음: {self.poll_interval}초")
        if self.poll_timeout <= 0:
            errors.append(f"잘못된 폴링 타임아웃: {self.poll_timeout}초")
        elif self.poll_timeout < self.poll_interval:
            warnings.append(
                f"폴링 타임아웃({self.poll_timeout}초)이 "
                f"폴링 간격({self.poll_interval}초)보다 짧음"
            )

        # 경고 로깅
        for warning in warnings:
            logger.warning(f"[Config] {warning}")

        # 오류 처리
        if errors:
            for error in errors:
                logger.error(f"[Config] {error}")
            if strict:
                raise ConfigurationError(
                    f"설정 검증 실패: {len(errors)}개 오류\n" + "\n".join(errors)
                )

        return errors + warnings

    @classmethod
    def from_env_validated(cls, strict: bool = True) -> "ClientConfig":
        """환경변수에서 설정 로드 및 검증

        Args:
            strict: True면 오류 시 예외 발생

        Returns:
            검증된 ClientConfig 인스턴스

        Raises:
            ConfigurationError: strict=True이고 오류가 있을 때
        """
        config = cls.from_env()
        config.validate(strict=strict)
        return config
