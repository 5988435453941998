# sims/core/errors.py

"""
실패한 요청을 닫힌 집합의 도메인 에러 종류로 분류하는 모듈입니다.

상품 흐름과 송장 흐름이 동일한 분류기를 사용합니다.
분류는 순수 함수이며 부수 효과가 없고, 스스로 재시도하지 않습니다.

- `ErrorKind`: 에러 종류 (ConnectionUnavailable, NotFound, ValidationFailed,
  Conflict, DependencyUnavailable, Unknown).
- `ClassifiedError`: 권한 서비스와의 통신 실패를 나타내는 예외.
- `LocalRejectionError`: 네트워크 요청 없이 클라이언트에서 거부된 작업.
"""

import logging
from enum import Enum
from typing import Any, Iterable, Optional

import httpx

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    CONNECTION_UNAVAILABLE = "ConnectionUnavailable"
    NOT_FOUND = "NotFound"
    VALIDATION_FAILED = "ValidationFailed"
    CONFLICT = "Conflict"
    DEPENDENCY_UNAVAILABLE = "DependencyUnavailable"
    UNKNOWN = "Unknown"


# 응답 본문에 메시지가 없을 때 사용하는 종류별 고정 메시지
DEFAULT_MESSAGES = {
    ErrorKind.CONNECTION_UNAVAILABLE: "Could not connect to the server. Check that the service is running.",
    ErrorKind.NOT_FOUND: "The requested record was not found.",
    ErrorKind.VALIDATION_FAILED: "The request was rejected as invalid.",
    ErrorKind.CONFLICT: "The request conflicts with an existing record.",
    ErrorKind.DEPENDENCY_UNAVAILABLE: "The inventory service could not be reached. Try again later.",
    ErrorKind.UNKNOWN: "An unknown error occurred.",
}

# 재시도하면 성공할 수 있는 종류 (요청 자체는 바꿀 필요가 없음)
RETRYABLE_KINDS = frozenset({ErrorKind.CONNECTION_UNAVAILABLE, ErrorKind.DEPENDENCY_UNAVAILABLE})


class ClassifiedError(Exception):
    """권한 서비스 호출 실패를 분류한 결과입니다."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None, status_code: Optional[int] = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.status_code = status_code
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def __repr__(self) -> str:
        return f"ClassifiedError(kind={self.kind.value}, status_code={self.status_code}, message={self.message!r})"


# =============================================================================
# 로컬 거부 (네트워크 요청 없음)
# =============================================================================
class LocalRejectionError(Exception):
    """요청을 보내기 전에 클라이언트에서 거부된 작업입니다."""


class DraftValidationError(LocalRejectionError):
    """송장 초안이 제출 전 로컬 검증을 통과하지 못했습니다."""

    def __init__(self, message: str, line_index: Optional[int] = None):
        self.line_index = line_index
        super().__init__(message)


class InvoiceAlreadyClosedError(LocalRejectionError):
    """마지막으로 관측된 상태가 CLOSED 인 송장에 대한 print 요청입니다."""


class InvoiceNotObservedError(LocalRejectionError):
    """컨트롤러가 한 번도 관측하지 않은 송장에 대한 print 요청입니다."""


class PrintInFlightError(LocalRejectionError):
    """같은 송장에 대한 print 요청이 이미 진행 중입니다."""


# =============================================================================
# 에러 분류기
# =============================================================================
class ErrorClassifier:
    """
    전송 결과와 상태 코드를 `ClassifiedError` 로 변환합니다.

    DependencyUnavailable 로 분류할 상태 코드는 설정으로 바꿀 수 있습니다.
    (청구 서비스가 재고 서비스에 도달하지 못한 경우를 503 으로 알리는 것은 관례일 뿐입니다.)
    """

    def __init__(self, dependency_unavailable_status_codes: Iterable[int] = (503,)):
        self.dependency_unavailable_status_codes = frozenset(dependency_unavailable_status_codes)

    def kind_for_status(self, status_code: int) -> ErrorKind:
        if status_code in self.dependency_unavailable_status_codes:
            return ErrorKind.DEPENDENCY_UNAVAILABLE
        if status_code == 404:
            return ErrorKind.NOT_FOUND
        if status_code in (400, 422):
            return ErrorKind.VALIDATION_FAILED
        if status_code == 409:
            return ErrorKind.CONFLICT
        return ErrorKind.UNKNOWN

    def from_response(self, response: httpx.Response) -> ClassifiedError:
        kind = self.kind_for_status(response.status_code)
        return ClassifiedError(kind, extract_message(response), status_code=response.status_code)

    def from_exception(self, exc: BaseException) -> ClassifiedError:
        """요청 중 발생한 예외를 분류합니다. 응답이 도착하지 않았다면 ConnectionUnavailable 입니다."""
        if isinstance(exc, ClassifiedError):
            return exc
        if isinstance(exc, httpx.HTTPStatusError):
            return self.from_response(exc.response)
        if isinstance(exc, httpx.TransportError):
            return ClassifiedError(ErrorKind.CONNECTION_UNAVAILABLE)
        return ClassifiedError(ErrorKind.UNKNOWN, str(exc) or None)


def extract_message(response: httpx.Response) -> Optional[str]:
    """
    응답 본문에서 사람이 읽을 수 있는 메시지를 꺼냅니다.
    FastAPI 의 {"detail": ...} 와 {"error": ..., "message": ...} 형식을 모두 지원합니다.
    error 와 message 가 함께 있으면 사람이 읽을 요약인 error 를 사용합니다.
    """
    try:
        body: Any = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None

    if not isinstance(body, dict):
        return None

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list) and detail:
        #  422 검증 에러: [{"loc": [...], "msg": "..."}, ...]
        messages = [item.get("msg") for item in detail if isinstance(item, dict) and item.get("msg")]
        if messages:
            return "; ".join(messages)
    if isinstance(detail, dict) and isinstance(detail.get("message"), str):
        return detail["message"]

    for key in ("error", "message"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None
