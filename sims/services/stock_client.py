# sims/services/stock_client.py

"""
청구 권한 서비스 -> 재고 권한 서비스 호출용 HTTP 클라이언트 모듈입니다.

청구 서비스는 이 클라이언트의 예외 종류로 자신의 응답 코드를 결정합니다.
- `StockServiceUnavailable`: 재고 서비스에 도달하지 못했거나 5xx 응답 (-> 503)
- `StockRequestRejected`: 재고 서비스가 요청을 거부함 (-> 400 / 404)
"""

import logging
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from sims.core.config import settings
from sims.core.errors import extract_message
from sims.core.http_client import build_async_client
from sims.domains.inv import schemas as inv_schemas

logger = logging.getLogger(__name__)


class StockServiceUnavailable(Exception):
    """재고 서비스와의 통신이 완료되지 못했습니다."""


class StockRequestRejected(Exception):
    """재고 서비스가 요청을 거부했습니다. (상품 없음, 잔량 부족 등)"""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message)


class StockClient:
    def __init__(self, http: Optional[httpx.AsyncClient] = None):
        self.http = http or build_async_client(
            settings.stock_api_url, timeout=settings.STOCK_CLIENT_TIMEOUT_SECONDS
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Stock service unreachable on %s %s: %s", method, url, exc)
            raise StockServiceUnavailable(str(exc)) from exc

        if response.status_code >= 500:
            logger.error("Stock service answered %d on %s %s", response.status_code, method, url)
            raise StockServiceUnavailable(f"Stock service returned status {response.status_code}")
        if response.is_error:
            message = extract_message(response) or f"Stock service returned status {response.status_code}"
            raise StockRequestRejected(message, response.status_code)
        return response

    async def get_product(self, product_id: str) -> inv_schemas.ProductResponse:
        response = await self._send("GET", f"/products/{product_id}")
        try:
            return inv_schemas.ProductResponse.model_validate(response.json())
        except ValueError as exc:
            raise StockServiceUnavailable(f"Malformed product payload: {exc}") from exc

    async def reserve_products(
        self,
        requests: List[inv_schemas.ReservationRequest],
        reservation_key: Optional[str] = None,
    ) -> List[inv_schemas.ReservationResponse]:
        """
        여러 상품을 한 번에 차감합니다.
        재고 서비스는 all-or-nothing 으로 처리하므로 거부되면 아무 잔량도 바뀌지 않습니다.
        같은 reservation_key 로 재시도하면 재고 서비스는 이미 적용된 차감을 반복하지 않습니다.
        """
        payload = inv_schemas.ReservationBatch(reservation_key=reservation_key, items=requests).model_dump()
        response = await self._send("POST", "/products/reserve", json=payload)
        try:
            results = TypeAdapter(List[inv_schemas.ReservationResponse]).validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            #  200 응답이면 차감은 이미 커밋되었으므로 본문을 읽지 못해도 성공으로 봅니다.
            logger.error("Reservation committed but its payload was unreadable: %s", exc)
            return []

        failed = [r for r in results if not r.success]
        if failed:
            raise StockRequestRejected(
                f"Failed to reserve product {failed[0].product_id}: {failed[0].error_message}", 400
            )
        return results
