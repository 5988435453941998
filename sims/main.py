# sims/main.py

"""
두 참조 권한 서비스의 FastAPI 애플리케이션 팩토리 모듈입니다.

- 재고 권한 서비스:  uvicorn sims.main:stock_app --port 8081
- 청구 권한 서비스:  uvicorn sims.main:billing_app --port 8082

저장소와 서비스 인스턴스는 팩토리에서 바로 `app.state` 에 등록합니다.
(테스트의 ASGITransport 는 lifespan 을 실행하지 않기 때문)
단, 청구 앱이 직접 소유하는 재고 서비스 클라이언트는 lifespan 에서 만들고 닫으므로
import 시점에는 HTTP 클라이언트가 열리지 않습니다.
"""

import logging
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sims import API_PREFIX, APP_VERSION
from sims.core.config import settings
from sims.domains.bil.crud import InvoiceCRUD
from sims.domains.bil.services import InvoiceService
from sims.domains.inv.crud import ProductCRUD
from sims.services.stock_client import StockClient

from sims.domains.inv.routers import router as inv_router
from sims.domains.bil.routers import router as bil_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _add_common(app: FastAPI, service_name: str) -> None:
    # -- CORS 미들웨어 설정 --
    # 개발용: 모든 출처 허용. 프로덕션에서는 실제 프론트엔드 도메인으로 제한해야 합니다.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
    async def read_root():
        """API의 시작점을 알리고 문서 링크를 제공합니다."""
        return {"message": f"Welcome to the SIMS {service_name} API. Visit /docs for interactive API documentation."}

    @app.get("/health", summary="Health Check", response_description="Status of the application.")
    async def health_check():
        """서비스의 정상 작동 여부를 확인합니다."""
        return {"status": "ok", "service": service_name}


# =============================================================================
# 1. 재고 권한 서비스
# =============================================================================
def create_stock_app(product_crud: Optional[ProductCRUD] = None) -> FastAPI:
    app = FastAPI(
        title="SIMS Inventory API",
        description="Inventory authority: product catalog and all-or-nothing stock reservation.",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.product_crud = product_crud or ProductCRUD()

    _add_common(app, "inventory")
    app.include_router(inv_router, prefix=API_PREFIX)
    return app


# =============================================================================
# 2. 청구 권한 서비스
# =============================================================================
@asynccontextmanager
async def billing_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    재고 서비스 클라이언트를 넘겨받지 않은 앱은 시작 시 클라이언트를 만들고 종료 시 닫습니다.
    넘겨받은 클라이언트는 호출자가 소유하므로 닫지 않습니다.
    """
    if app.state.owns_stock_client:
        app.state.stock_client = StockClient()
        app.state.invoice_service = InvoiceService(app.state.invoice_crud, app.state.stock_client)
    logger.info("Billing service starting; inventory authority at %s", settings.stock_api_url)
    yield
    if app.state.owns_stock_client:
        await app.state.stock_client.aclose()
        app.state.stock_client = None
    logger.info("Billing service stopped.")


def create_billing_app(
    stock_client: Optional[StockClient] = None,
    invoice_crud: Optional[InvoiceCRUD] = None,
) -> FastAPI:
    """
    stock_client 를 넘기면 그 클라이언트로 바로 서비스를 구성합니다. (lifespan 없이도 동작)
    넘기지 않으면 lifespan 시작 시 설정의 주소로 클라이언트를 만듭니다.
    """
    app = FastAPI(
        title="SIMS Invoicing API",
        description="Invoicing authority: invoices and the print transition (OPEN -> CLOSED) that consumes stock.",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=billing_lifespan,
    )
    app.state.invoice_crud = invoice_crud or InvoiceCRUD()
    app.state.owns_stock_client = stock_client is None
    app.state.stock_client = stock_client
    if stock_client is not None:
        app.state.invoice_service = InvoiceService(app.state.invoice_crud, stock_client)

    _add_common(app, "invoicing")
    app.include_router(bil_router, prefix=API_PREFIX)
    return app


stock_app = create_stock_app()
billing_app = create_billing_app()
