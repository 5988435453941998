# sims/core/dependencies.py

"""
참조 권한 서비스의 FastAPI 의존성 주입(Dependency Injection)을 정의하는 모듈입니다.

저장소와 서비스 인스턴스는 애플리케이션 팩토리(main.py)에서 `app.state` 에 등록되며,
라우터는 아래 함수들을 통해 요청마다 꺼내 씁니다.
테스트에서는 `app.dependency_overrides` 로 교체할 수 있습니다.
"""

from fastapi import Request

from sims.domains.inv.crud import ProductCRUD
from sims.domains.bil.services import InvoiceService


def get_product_crud(request: Request) -> ProductCRUD:
    """재고 서비스의 상품 저장소를 반환합니다."""
    return request.app.state.product_crud


def get_invoice_service(request: Request) -> InvoiceService:
    """청구 서비스의 송장 서비스 인스턴스를 반환합니다."""
    return request.app.state.invoice_service
