# sims/domains/inv/routers.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from sims.core import dependencies as deps
from sims.domains.inv import schemas as inv_schemas
from sims.domains.inv.crud import ProductCRUD

router = APIRouter(
    tags=["Inventory Authority (재고 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 상품 엔드포인트
# =============================================================================
@router.post(
    "/products",
    response_model=inv_schemas.ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    product_create: inv_schemas.ProductCreate,
    crud: ProductCRUD = Depends(deps.get_product_crud),
):
    """새로운 상품을 생성합니다. 코드가 중복되면 409 를 반환합니다."""
    return await crud.create(obj_in=product_create)


@router.get("/products", response_model=List[inv_schemas.ProductResponse])
async def read_products(
    skip: int = 0, limit: int = 100, crud: ProductCRUD = Depends(deps.get_product_crud)
):
    """모든 상품 목록을 조회합니다."""
    return await crud.get_multi(skip=skip, limit=limit)


@router.get("/products/{product_id}", response_model=inv_schemas.ProductResponse)
async def read_product(product_id: str, crud: ProductCRUD = Depends(deps.get_product_crud)):
    """ID로 특정 상품을 조회합니다."""
    db_product = await crud.get(product_id)
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return db_product


@router.put("/products/{product_id}", response_model=inv_schemas.ProductResponse)
async def update_product(
    product_id: str,
    product_update: inv_schemas.ProductUpdate,
    crud: ProductCRUD = Depends(deps.get_product_crud),
):
    """ID로 특정 상품을 업데이트합니다."""
    db_product = await crud.get(product_id)
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return await crud.update(db_obj=db_product, obj_in=product_update)


# =============================================================================
# 2. 재고 예약 엔드포인트 (청구 서비스 전용)
# =============================================================================
@router.post("/products/reserve", response_model=List[inv_schemas.ReservationResponse])
async def reserve_stock(
    batch: inv_schemas.ReservationBatch,
    crud: ProductCRUD = Depends(deps.get_product_crud),
):
    """
    여러 상품의 재고를 all-or-nothing 으로 차감합니다.
    이미 적용된 reservation_key 는 다시 차감하지 않고 저장된 결과를 반환합니다.
    """
    return await crud.reserve_many(requests=batch.items, reservation_key=batch.reservation_key)
