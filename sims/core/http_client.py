# sims/core/http_client.py

"""
REST 협력자(권한 서비스) 호출을 위한 공통 기본 클래스 모듈입니다.
모든 메서드는 비동기(async) 환경에서 동작합니다.

각 도메인의 client.py 는 `AuthorityClient` 를 상속하여 엔드포인트별 메서드만 정의합니다.
실패 경로는 모두 `ErrorClassifier` 를 거쳐 `ClassifiedError` 로 올라갑니다.
"""

import logging
from typing import Any, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from sims.core.config import settings
from sims.core.errors import ClassifiedError, ErrorClassifier, ErrorKind

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)


def build_async_client(base_url: str, *, timeout: Optional[float] = None, **kwargs: Any) -> httpx.AsyncClient:
    """
    권한 서비스용 httpx.AsyncClient 를 생성합니다.
    timeout 이 None 이면 클라이언트 측 타임아웃을 두지 않습니다.
    """
    return httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(timeout), **kwargs)


def default_classifier() -> ErrorClassifier:
    return ErrorClassifier(settings.DEPENDENCY_UNAVAILABLE_STATUS_CODES)


class AuthorityClient:
    """
    하나의 권한 서비스에 대한 REST 클라이언트 기본 클래스입니다.
    """
    def __init__(self, http: httpx.AsyncClient, classifier: Optional[ErrorClassifier] = None):
        self.http = http
        self.classifier = classifier or default_classifier()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        요청을 보내고 2xx 가 아니면 분류된 에러를 발생시킵니다.
        재시도는 하지 않습니다.
        """
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            error = self.classifier.from_exception(exc)
            logger.warning("%s %s failed without a response: %s", method, url, exc)
            raise error from exc

        if response.is_error:
            error = self.classifier.from_response(response)
            logger.warning(
                "%s %s -> %d classified as %s: %s",
                method, url, response.status_code, error.kind.value, error.message,
            )
            raise error
        return response

    def parse(self, response: httpx.Response, schema: Type[SchemaType]) -> SchemaType:
        """응답 본문을 스키마로 변환합니다. 형식이 맞지 않으면 Unknown 으로 분류합니다."""
        try:
            return schema.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise self._malformed(response, exc) from exc

    def parse_list(self, response: httpx.Response, schema: Type[SchemaType]) -> List[SchemaType]:
        try:
            return TypeAdapter(List[schema]).validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise self._malformed(response, exc) from exc

    def _malformed(self, response: httpx.Response, exc: Exception) -> ClassifiedError:
        logger.error("Malformed payload from %s: %s", response.request.url, exc)
        return ClassifiedError(
            ErrorKind.UNKNOWN,
            "The server returned an unexpected response.",
            status_code=response.status_code,
        )
