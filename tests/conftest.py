# tests/conftest.py

from typing import AsyncGenerator, Any, Callable, Dict, List, Optional
from contextlib import AsyncExitStack
from datetime import datetime, UTC

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from fastapi import FastAPI

from sims.core.errors import ErrorClassifier
from sims.domains.bil.crud import InvoiceCRUD
from sims.domains.inv.crud import ProductCRUD
from sims.main import create_stock_app, create_billing_app
from sims.services.invoicing_core import InvoicingCore
from sims.services.stock_client import StockClient

STOCK_BASE_URL = "http://stock/api"
BILLING_BASE_URL = "http://billing/api"

Handler = Callable[[httpx.Request], Any]


# --- 참조 권한 서비스 픽스처 ---
# 테스트마다 새 메모리 저장소를 가진 앱을 만듭니다.
@pytest.fixture(scope="function")
def product_crud() -> ProductCRUD:
    return ProductCRUD()


@pytest.fixture(scope="function")
def invoice_crud() -> InvoiceCRUD:
    return InvoiceCRUD()


@pytest.fixture(scope="function")
def stock_app(product_crud: ProductCRUD) -> FastAPI:
    return create_stock_app(product_crud=product_crud)


@pytest_asyncio.fixture(scope="function")
async def stock_service_client(stock_app: FastAPI) -> AsyncGenerator[StockClient, None]:
    """청구 서비스가 재고 서비스를 호출할 때 쓰는 클라이언트 (ASGITransport 로 재고 앱에 연결)."""
    http = AsyncClient(transport=ASGITransport(app=stock_app), base_url=STOCK_BASE_URL)
    stock_client = StockClient(http)
    yield stock_client
    await stock_client.aclose()


@pytest.fixture(scope="function")
def billing_app(stock_service_client: StockClient, invoice_crud: InvoiceCRUD) -> FastAPI:
    return create_billing_app(stock_client=stock_service_client, invoice_crud=invoice_crud)


@pytest_asyncio.fixture(scope="function")
async def stock_api(stock_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """재고 권한 서비스 API 를 직접 호출하는 클라이언트."""
    async with AsyncClient(transport=ASGITransport(app=stock_app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def billing_api(billing_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """청구 권한 서비스 API 를 직접 호출하는 클라이언트."""
    async with AsyncClient(transport=ASGITransport(app=billing_app), base_url="http://test") as client:
        yield client


# --- 클라이언트 코어 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def core(stock_app: FastAPI, billing_app: FastAPI) -> AsyncGenerator[InvoicingCore, None]:
    """두 참조 권한 서비스에 연결된 클라이언트 코어 (종단 간 테스트용)."""
    async with AsyncClient(transport=ASGITransport(app=stock_app), base_url=STOCK_BASE_URL) as stock_http, \
            AsyncClient(transport=ASGITransport(app=billing_app), base_url=BILLING_BASE_URL) as billing_http:
        invoicing_core = InvoicingCore(stock_http, billing_http, ErrorClassifier([503]))
        yield invoicing_core
        await invoicing_core.invoices.drain()


@pytest_asyncio.fixture(scope="function")
async def scripted_core_factory() -> AsyncGenerator[Callable[..., InvoicingCore], None]:
    """
    응답을 직접 정의한 MockTransport 핸들러로 클라이언트 코어를 만드는 팩토리를 반환합니다.
    핸들러는 동기/비동기 함수 모두 가능하며, 넘기지 않은 쪽은 모든 요청에 500 을 반환합니다.
    """
    stack = AsyncExitStack()
    cores: List[InvoicingCore] = []

    def _create_core(
        stock_handler: Optional[Handler] = None,
        billing_handler: Optional[Handler] = None,
        dependency_unavailable_status_codes: Optional[List[int]] = None,
    ) -> InvoicingCore:
        def _unavailable(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"detail": "not scripted"})

        stock_http = AsyncClient(
            transport=httpx.MockTransport(stock_handler or _unavailable), base_url=STOCK_BASE_URL
        )
        billing_http = AsyncClient(
            transport=httpx.MockTransport(billing_handler or _unavailable), base_url=BILLING_BASE_URL
        )
        stack.push_async_callback(stock_http.aclose)
        stack.push_async_callback(billing_http.aclose)
        classifier = ErrorClassifier(dependency_unavailable_status_codes or [503])
        invoicing_core = InvoicingCore(stock_http, billing_http, classifier)
        cores.append(invoicing_core)
        return invoicing_core

    yield _create_core

    for invoicing_core in cores:
        await invoicing_core.invoices.drain()
    await stack.aclose()


# --- 전송 형식(wire) 페이로드 팩토리 ---
@pytest.fixture(scope="session")
def product_payload() -> Callable[..., Dict[str, Any]]:
    def _payload(product_id: str, code: str, balance: int, description: Optional[str] = None) -> Dict[str, Any]:
        now = datetime.now(UTC).isoformat()
        return {
            "id": product_id,
            "code": code,
            "description": description or f"{code} 설명",
            "balance": balance,
            "created_at": now,
            "updated_at": now,
        }
    return _payload


@pytest.fixture(scope="session")
def invoice_payload() -> Callable[..., Dict[str, Any]]:
    def _payload(
        invoice_id: str,
        number: int,
        status: str = "ABERTA",
        items: Optional[List[Dict[str, Any]]] = None,
        closed_at: Optional[str] = None,
    ) -> Dict[str, Any]:
        now = datetime.now(UTC).isoformat()
        return {
            "id": invoice_id,
            "number": number,
            "status": status,
            "items": items if items is not None else [
                {"product_id": "p1", "product_code": "P1", "description": "P1 설명", "quantity": 3}
            ],
            "created_at": now,
            "updated_at": now,
            "closed_at": closed_at,
        }
    return _payload
