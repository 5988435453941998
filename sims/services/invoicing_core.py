# sims/services/invoicing_core.py

"""
클라이언트 코어를 조립하는 모듈입니다.

두 권한 서비스에 대한 HTTP 클라이언트, 에러 분류기, 잔량 캐시,
상품 서비스, 송장 수명 주기 컨트롤러를 하나의 `InvoicingCore` 로 묶습니다.
캐시는 코어마다 하나씩 명시적으로 소유되며 전역 싱글톤이 아닙니다.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

import httpx

from sims.core.config import settings
from sims.core.errors import ErrorClassifier
from sims.core.http_client import build_async_client, default_classifier
from sims.domains.bil import schemas as bil_schemas
from sims.domains.bil.client import InvoiceClient
from sims.domains.bil.draft import InvoiceDraftBuilder
from sims.domains.bil.lifecycle import InvoiceLifecycleController
from sims.domains.inv.cache import BalanceCache
from sims.domains.inv.client import ProductClient
from sims.domains.inv.services import ProductService

logger = logging.getLogger(__name__)


class InvoicingCore:
    """
    재고/청구 흐름에서 사용하는 객체들을 한곳에서 생성하고 연결합니다.

    - `products`: 상품 카탈로그 조회/생성/수정 (성공 시 캐시 갱신)
    - `invoices`: 송장 생성과 print
    - `balance_cache`: 상품 잔량 스냅샷
    - `new_draft()`: 캐시를 참조하는 새 송장 초안
    """

    def __init__(
        self,
        stock_http: httpx.AsyncClient,
        billing_http: httpx.AsyncClient,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.classifier = classifier or default_classifier()
        self.product_client = ProductClient(stock_http, self.classifier)
        self.invoice_client = InvoiceClient(billing_http, self.classifier)
        self.balance_cache = BalanceCache(self.product_client)
        self.products = ProductService(self.product_client, self.balance_cache)
        self.invoices = InvoiceLifecycleController(self.invoice_client, self.balance_cache)

    def new_draft(self) -> InvoiceDraftBuilder:
        return InvoiceDraftBuilder(self.balance_cache)

    async def submit_draft(self, draft: InvoiceDraftBuilder) -> bil_schemas.InvoiceResponse:
        """초안을 로컬 검증한 뒤 송장으로 생성합니다. 검증 실패 시 요청을 보내지 않습니다."""
        submission = draft.build_submission()
        return await self.invoices.create(submission)


@asynccontextmanager
async def open_invoicing_core(
    stock_http: Optional[httpx.AsyncClient] = None,
    billing_http: Optional[httpx.AsyncClient] = None,
    classifier: Optional[ErrorClassifier] = None,
) -> AsyncGenerator[InvoicingCore, None]:
    """
    `InvoicingCore` 를 생성하고, 종료 시 진행 중인 print 를 기다린 뒤 연결을 정리합니다.
    HTTP 클라이언트를 넘기지 않으면 설정(settings)의 주소로 새로 만들며,
    직접 만든 클라이언트만 닫습니다.
    """
    owned: List[httpx.AsyncClient] = []
    if stock_http is None:
        stock_http = build_async_client(settings.stock_api_url, timeout=settings.HTTP_TIMEOUT_SECONDS)
        owned.append(stock_http)
    if billing_http is None:
        billing_http = build_async_client(settings.billing_api_url, timeout=settings.HTTP_TIMEOUT_SECONDS)
        owned.append(billing_http)

    core = InvoicingCore(stock_http, billing_http, classifier)
    try:
        yield core
    finally:
        await core.invoices.drain()
        for client in owned:
            await client.aclose()
        logger.debug("Invoicing core closed.")
