"""
Qalib Python SDK

Qalib 이미지 렌더링 API 비동기 클라이언트, 렌더 완료 폴링, 에러 분류 제공.
"""

__version__ = "1.0.0"

from .client import Qalib
from .config import ClientConfig, ConfigurationError
from .errors import (
    ErrorCategory,
    ErrorClassifier,
    ErrorKind,
    QalibError,
    translate_response,
    translate_transport_error,
)
from .renders import PollState, RenderPoller, Renders
from .templates import Templates
from .transport import Transport
from .types import (
    HealthStatus,
    ImageVariable,
    Pagination,
    RatingVariable,
    Render,
    RenderMode,
    RenderStatus,
    Template,
    TemplateList,
    TextVariable,
    Variable,
    resolve_mode,
)

__all__ = [
    # Client
    "Qalib",
    "Renders",
    "Templates",
    "Transport",
    "RenderPoller",
    "PollState",
    # Config
    "ClientConfig",
    "ConfigurationError",
    # Errors
    "ErrorCategory",
    "ErrorClassifier",
    "ErrorKind",
    "QalibError",
    "translate_response",
    "translate_transport_error",
    # Types
    "HealthStatus",
    "ImageVariable",
    "Pagination",
    "RatingVariable",
    "Render",
    "RenderMode",
    "RenderStatus",
    "Template",
    "TemplateList",
    "TextVariable",
    "Variable",
    "resolve_mode",
    "__version__",
]
