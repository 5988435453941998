# sims/domains/bil/services.py

"""
청구 권한 서비스(참조 구현)의 송장 생성/print 비즈니스 로직 모듈입니다.

print 는 재고 서비스의 잔량 차감과 송장 CLOSED 처리를 묶은 작업입니다.
재고 서비스가 모든 줄을 all-or-nothing 으로 차감한 뒤에만 송장을 CLOSED 로 바꾸므로,
두 작업은 모두 일어나거나 모두 일어나지 않습니다.
같은 송장에 대한 print 는 송장별 잠금으로 직렬화합니다.
차감 요청의 예약 키는 송장 ID 이므로, 응답이 유실된 print 를 재시도해도 재고는 한 번만 차감됩니다.
"""

import asyncio
import logging
import uuid
from datetime import datetime, UTC
from typing import Dict, List

from fastapi import HTTPException, status

from sims.domains.bil import schemas as bil_schemas
from sims.domains.bil.crud import InvoiceCRUD
from sims.domains.inv import schemas as inv_schemas
from sims.services.stock_client import StockClient, StockRequestRejected, StockServiceUnavailable

logger = logging.getLogger(__name__)

DEPENDENCY_UNAVAILABLE_DETAIL = "Could not update stock: the inventory service is unavailable or did not answer. Try again."


class InvoiceService:
    def __init__(self, crud: InvoiceCRUD, stock_client: StockClient):
        self.crud = crud
        self.stock_client = stock_client
        #  진행 중이거나 대기 중인 print 가 있는 송장에만 잠금이 존재합니다.
        self._print_locks: Dict[str, asyncio.Lock] = {}
        self._print_lock_users: Dict[str, int] = {}

    async def get_invoice(self, invoice_id: str) -> bil_schemas.InvoiceResponse:
        invoice = await self.crud.get(invoice_id)
        if invoice is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found.")
        return invoice

    async def list_invoices(self, *, skip: int = 0, limit: int = 100) -> List[bil_schemas.InvoiceResponse]:
        return await self.crud.get_multi(skip=skip, limit=limit)

    async def create_invoice(self, invoice_in: bil_schemas.InvoiceCreate) -> bil_schemas.InvoiceResponse:
        """
        송장을 OPEN 상태로 생성합니다.
        각 품목은 재고 서비스에서 상품 정보를 가져와 코드/설명 사본으로 보강하고,
        현재 잔량보다 많은 수량은 거부합니다. (차감은 print 시점에만 일어남)
        """
        if not invoice_in.items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The invoice must have at least one item.")

        items: List[bil_schemas.InvoiceItemResponse] = []
        for item in invoice_in.items:
            try:
                product = await self.stock_client.get_product(item.product_id)
            except StockServiceUnavailable:
                raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DEPENDENCY_UNAVAILABLE_DETAIL)
            except StockRequestRejected as exc:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Product {item.product_id} could not be used: {exc}",
                )

            if product.balance < item.quantity:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=(
                        f"Insufficient balance for product {product.code} "
                        f"(available: {product.balance}, requested: {item.quantity})"
                    ),
                )
            items.append(bil_schemas.InvoiceItemResponse(
                product_id=item.product_id,
                product_code=product.code,
                description=product.description,
                quantity=item.quantity,
            ))

        now = datetime.now(UTC)
        invoice = bil_schemas.InvoiceResponse(
            id=str(uuid.uuid4()),
            number=await self.crud.next_number(),
            status=bil_schemas.InvoiceStatus.OPEN,
            items=items,
            created_at=now,
            updated_at=now,
        )
        logger.info("Invoice %d created with %d item(s).", invoice.number, len(items))
        return await self.crud.create(db_obj=invoice)

    async def print_invoice(self, invoice_id: str) -> bil_schemas.InvoiceResponse:
        """
        송장을 print(CLOSED) 하고 재고를 차감합니다.

        - 404: 송장이 없음 (잠금을 만들지 않음)
        - 400: 이미 CLOSED 이거나 재고 서비스가 차감을 거부함 (송장 변경 없음)
        - 503: 재고 서비스의 응답을 받지 못함 (송장은 OPEN)

        차감 요청에는 송장 ID 를 예약 키로 실어 보냅니다.
        503 뒤의 재시도는 이미 커밋된 차감을 반복하지 않고 송장만 CLOSED 로 전이합니다.
        """
        await self.get_invoice(invoice_id)

        lock = self._print_locks.setdefault(invoice_id, asyncio.Lock())
        self._print_lock_users[invoice_id] = self._print_lock_users.get(invoice_id, 0) + 1
        try:
            async with lock:
                return await self._print_locked(invoice_id)
        finally:
            #  대기자가 없으면 잠금을 버립니다. 진행 중인 print 가 없을 때 두 맵은 비어 있습니다.
            self._print_lock_users[invoice_id] -= 1
            if self._print_lock_users[invoice_id] == 0:
                del self._print_lock_users[invoice_id]
                del self._print_locks[invoice_id]

    async def _print_locked(self, invoice_id: str) -> bil_schemas.InvoiceResponse:
        invoice = await self.get_invoice(invoice_id)
        if not invoice.is_open:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice is already closed.")

        reservations = [
            inv_schemas.ReservationRequest(product_id=item.product_id, quantity=item.quantity)
            for item in invoice.items
        ]
        try:
            await self.stock_client.reserve_products(reservations, reservation_key=invoice.id)
        except StockServiceUnavailable:
            logger.error("Print of invoice %d aborted: inventory service unavailable.", invoice.number)
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DEPENDENCY_UNAVAILABLE_DETAIL)
        except StockRequestRejected as exc:
            logger.info("Print of invoice %d rejected by inventory service: %s", invoice.number, exc)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

        now = datetime.now(UTC)
        closed = invoice.model_copy(update={
            "status": bil_schemas.InvoiceStatus.CLOSED,
            "closed_at": now,
            "updated_at": now,
        })
        logger.info("Invoice %d closed.", invoice.number)
        return await self.crud.update(db_obj=closed)
