# sims/domains/inv/crud.py

"""
재고 권한 서비스(참조 구현)의 메모리 저장소 모듈입니다.
저장 형식은 범위 밖이므로 프로세스 메모리에만 보관합니다.
"""

import asyncio
import logging
import uuid
from datetime import datetime, UTC
from typing import Dict, List, Optional

from fastapi import HTTPException, status

from sims.domains.inv import schemas as inv_schemas

logger = logging.getLogger(__name__)


class ProductCRUD:
    """
    상품 레코드의 생성/조회/수정과 재고 예약을 처리합니다.
    코드(code)는 고유해야 하며, 중복 시 409 를 발생시킵니다.
    """

    def __init__(self):
        self._products: Dict[str, inv_schemas.ProductResponse] = {}
        self._codes: Dict[str, str] = {}
        #  적용된 예약 키 -> 당시 결과
        self._applied_reservations: Dict[str, List[inv_schemas.ReservationResponse]] = {}
        self._lock = asyncio.Lock()

    async def get(self, id: str) -> Optional[inv_schemas.ProductResponse]:
        return self._products.get(id)

    async def get_by_code(self, *, code: str) -> Optional[inv_schemas.ProductResponse]:
        product_id = self._codes.get(code)
        return self._products.get(product_id) if product_id else None

    async def get_multi(self, *, skip: int = 0, limit: int = 100) -> List[inv_schemas.ProductResponse]:
        return list(self._products.values())[skip:skip + limit]

    async def create(self, *, obj_in: inv_schemas.ProductCreate) -> inv_schemas.ProductResponse:
        async with self._lock:
            if obj_in.code in self._codes:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Product code '{obj_in.code}' already exists.",
                )
            now = datetime.now(UTC)
            product = inv_schemas.ProductResponse(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                **obj_in.model_dump(),
            )
            self._products[product.id] = product
            self._codes[product.code] = product.id
            return product

    async def update(
        self, *, db_obj: inv_schemas.ProductResponse, obj_in: inv_schemas.ProductUpdate
    ) -> inv_schemas.ProductResponse:
        async with self._lock:
            if obj_in.code != db_obj.code and obj_in.code in self._codes:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Product code '{obj_in.code}' already exists.",
                )
            updated = db_obj.model_copy(
                update={**obj_in.model_dump(), "updated_at": datetime.now(UTC)}
            )
            self._codes.pop(db_obj.code, None)
            self._codes[updated.code] = updated.id
            self._products[updated.id] = updated
            return updated

    async def reserve_many(
        self, *, requests: List[inv_schemas.ReservationRequest], reservation_key: Optional[str] = None
    ) -> List[inv_schemas.ReservationResponse]:
        """
        여러 상품의 재고를 한 번에 차감합니다. (all-or-nothing)

        모든 줄을 먼저 검증하고, 하나라도 실패하면 아무것도 차감하지 않고
        줄별 결과와 함께 400 을 발생시킵니다.
        같은 상품이 여러 줄에 나오면 수량을 합산하여 검증합니다.
        reservation_key 가 이미 적용된 키이면 아무것도 차감하지 않고 그때의 결과를 다시 돌려줍니다.
        응답이 유실된 뒤 같은 키로 재시도해도 재고는 한 번만 차감됩니다.
        """
        if not requests:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No reservation lines given.")

        async with self._lock:
            if reservation_key is not None and reservation_key in self._applied_reservations:
                logger.info("Reservation %s already applied; replaying its result.", reservation_key)
                return self._applied_reservations[reservation_key]

            requested: Dict[str, int] = {}
            for req in requests:
                requested[req.product_id] = requested.get(req.product_id, 0) + req.quantity

            results: List[inv_schemas.ReservationResponse] = []
            failed = False
            for req in requests:
                product = self._products.get(req.product_id)
                if product is None:
                    failed = True
                    results.append(inv_schemas.ReservationResponse(
                        success=False, product_id=req.product_id, error_message="Product not found."
                    ))
                elif product.balance < requested[req.product_id]:
                    failed = True
                    results.append(inv_schemas.ReservationResponse(
                        success=False,
                        product_id=req.product_id,
                        new_balance=product.balance,
                        error_message=(
                            f"Insufficient balance for {product.code} "
                            f"(available: {product.balance}, requested: {requested[req.product_id]})"
                        ),
                    ))
                else:
                    results.append(inv_schemas.ReservationResponse(
                        success=True,
                        product_id=req.product_id,
                        new_balance=product.balance - requested[req.product_id],
                    ))

            if failed:
                logger.info("Reservation rejected; no balance was changed.")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail={
                        "message": next(r.error_message for r in results if not r.success),
                        "results": [r.model_dump() for r in results],
                    },
                )

            #  모든 줄이 통과한 경우에만 차감을 적용합니다.
            now = datetime.now(UTC)
            for product_id, quantity in requested.items():
                product = self._products[product_id]
                self._products[product_id] = product.model_copy(
                    update={"balance": product.balance - quantity, "updated_at": now}
                )
            if reservation_key is not None:
                self._applied_reservations[reservation_key] = results
            logger.info("Reserved stock for %d product(s).", len(requested))
            return results
