# tests/test_main.py

"""
두 참조 권한 서비스 애플리케이션의 메인 엔드포인트에 대한 통합 테스트 모듈입니다.

- 루트 경로 (`/`) 응답을 테스트합니다.
- 헬스 체크 엔드포인트 (`/health`)를 테스트합니다.
"""

import pytest
from httpx import AsyncClient

from sims.main import create_billing_app


@pytest.mark.asyncio
async def test_read_root(stock_api: AsyncClient, billing_api: AsyncClient):
    """루트 엔드포인트 (`GET /`)가 서비스별 환영 메시지를 반환하는지 테스트합니다."""
    response = await stock_api.get("/")
    assert response.status_code == 200
    assert response.json() == {
        "message": "Welcome to the SIMS inventory API. Visit /docs for interactive API documentation."
    }

    response = await billing_api.get("/")
    assert response.status_code == 200
    assert "invoicing" in response.json()["message"]


@pytest.mark.asyncio
async def test_health_check(stock_api: AsyncClient, billing_api: AsyncClient):
    """헬스 체크 엔드포인트 (`GET /health`)가 정상 상태를 반환하는지 테스트합니다."""
    response = await stock_api.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "inventory"}

    response = await billing_api.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "invoicing"}


@pytest.mark.asyncio
async def test_routes_are_mounted_under_api_prefix(stock_api: AsyncClient, billing_api: AsyncClient):
    """도메인 라우트는 `/api` 접두사 아래에만 존재합니다."""
    assert (await stock_api.get("/api/products")).status_code == 200
    assert (await stock_api.get("/products")).status_code == 404
    assert (await billing_api.get("/api/invoices")).status_code == 200


@pytest.mark.asyncio
async def test_billing_app_closes_only_its_own_stock_client(stock_service_client):
    """
    재고 서비스 클라이언트를 넘기지 않은 청구 앱은 lifespan 에서 클라이언트를 만들고 닫으며,
    넘겨받은 클라이언트는 lifespan 이 끝나도 닫지 않습니다.
    """
    owned_app = create_billing_app()
    assert owned_app.state.stock_client is None

    async with owned_app.router.lifespan_context(owned_app):
        created = owned_app.state.stock_client
        assert created is not None
        assert owned_app.state.invoice_service.stock_client is created
    assert created.http.is_closed

    shared_app = create_billing_app(stock_client=stock_service_client)
    async with shared_app.router.lifespan_context(shared_app):
        assert shared_app.state.stock_client is stock_service_client
    assert not stock_service_client.http.is_closed
