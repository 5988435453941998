# sims/domains/inv/schemas.py

"""
'inv' 도메인의 Pydantic 스키마를 정의하는 모듈입니다.
"""

from typing import List, Optional
from datetime import datetime
from pydantic import Field
from sqlmodel import SQLModel


# =============================================================================
# 1. 상품 (Product) 스키마
# =============================================================================
class ProductBase(SQLModel):
    code: str = Field(..., min_length=1, max_length=50, description="상품 코드 (카탈로그 소유자가 부여하는 고유 업무 키)")
    description: str = Field(..., min_length=1, description="상품 설명")
    balance: int = Field(..., ge=0, description="재고 잔량 (0 이상의 정수, 단위 수량)")


class ProductCreate(ProductBase):
    pass


class ProductUpdate(ProductBase):
    """원본 서비스와 동일하게 PUT 은 세 필드를 모두 교체합니다."""
    pass


class ProductResponse(ProductBase):
    id: str = Field(..., description="상품 고유 ID")
    created_at: datetime = Field(..., description="레코드 생성 일시")
    updated_at: datetime = Field(..., description="레코드 마지막 업데이트 일시")


# =============================================================================
# 2. 재고 예약 (청구 서비스 -> 재고 서비스) 스키마
# =============================================================================
class ReservationRequest(SQLModel):
    product_id: str = Field(..., min_length=1, description="차감할 상품 ID")
    quantity: int = Field(..., ge=1, description="차감 수량")


class ReservationResponse(SQLModel):
    success: bool = Field(..., description="해당 줄의 예약 성공 여부")
    product_id: str = Field(..., description="상품 ID")
    new_balance: int = Field(0, description="예약 후 (또는 현재) 잔량")
    error_message: Optional[str] = Field(None, description="실패 사유")


class ReservationBatch(SQLModel):
    """
    한 번의 all-or-nothing 차감 요청입니다.
    같은 reservation_key 로 다시 보내면 재고 서비스는 차감을 반복하지 않고 저장된 결과를 돌려줍니다.
    """
    reservation_key: Optional[str] = Field(None, min_length=1, description="재시도 식별 키 (청구 서비스는 송장 ID 를 사용)")
    items: List[ReservationRequest] = Field(..., description="차감할 줄 목록")
