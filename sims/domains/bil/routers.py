# sims/domains/bil/routers.py

from typing import List

from fastapi import APIRouter, Depends, status

from sims.core import dependencies as deps
from sims.domains.bil import schemas as bil_schemas
from sims.domains.bil.services import InvoiceService

router = APIRouter(
    tags=["Invoicing Authority (송장 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 송장 엔드포인트
# =============================================================================
@router.get("/invoices", response_model=List[bil_schemas.InvoiceResponse])
async def read_invoices(
    skip: int = 0, limit: int = 100, service: InvoiceService = Depends(deps.get_invoice_service)
):
    """모든 송장 목록을 번호 순으로 조회합니다."""
    return await service.list_invoices(skip=skip, limit=limit)


@router.get("/invoices/{invoice_id}", response_model=bil_schemas.InvoiceResponse)
async def read_invoice(invoice_id: str, service: InvoiceService = Depends(deps.get_invoice_service)):
    """ID로 특정 송장을 조회합니다."""
    return await service.get_invoice(invoice_id)


@router.post(
    "/invoices",
    response_model=bil_schemas.InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    invoice_create: bil_schemas.InvoiceCreate,
    service: InvoiceService = Depends(deps.get_invoice_service),
):
    """
    새로운 송장을 OPEN 상태로 생성합니다.
    재고는 이 시점에 차감되지 않습니다.
    """
    return await service.create_invoice(invoice_create)


# =============================================================================
# 2. print 엔드포인트 (OPEN -> CLOSED, 재고 차감)
# =============================================================================
@router.post("/invoices/{invoice_id}/print", response_model=bil_schemas.PrintResponse)
async def print_invoice(invoice_id: str, service: InvoiceService = Depends(deps.get_invoice_service)):
    """
    송장을 print 합니다. 재고 차감이 커밋된 경우에만 CLOSED 로 전이됩니다.
    재고 서비스에 도달하지 못하면 503 을 반환하며 송장은 바뀌지 않습니다.
    """
    invoice = await service.print_invoice(invoice_id)
    return bil_schemas.PrintResponse(
        success=True,
        message="Invoice printed successfully.",
        invoice=invoice.model_dump(mode="json"),
    )
