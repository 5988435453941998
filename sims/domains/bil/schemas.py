# sims/domains/bil/schemas.py

"""
'bil' 도메인의 Pydantic 스키마를 정의하는 모듈입니다.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import Field
from sqlmodel import SQLModel


class InvoiceStatus(str, Enum):
    """
    송장 상태. 값은 전송 형식(wire) 그대로의 토큰이며 변환 없이 왕복해야 합니다.
    """
    OPEN = "ABERTA"
    CLOSED = "FECHADA"


# =============================================================================
# 1. 송장 품목 (InvoiceItem) 스키마
# =============================================================================
class InvoiceItemCreate(SQLModel):
    product_id: str = Field(..., min_length=1, description="상품 ID")
    quantity: int = Field(..., ge=1, description="수량 (1 이상)")


class InvoiceItemResponse(InvoiceItemCreate):
    product_code: str = Field("", description="생성 시점의 상품 코드 (비정규화 사본)")
    description: str = Field("", description="생성 시점의 상품 설명 (비정규화 사본)")


# =============================================================================
# 2. 송장 (Invoice) 스키마
# =============================================================================
class InvoiceCreate(SQLModel):
    """청구 권한 서비스로 넘어가는 유일한 계약: {product_id, quantity} 목록만 담습니다."""
    items: List[InvoiceItemCreate] = Field(..., description="송장 품목 목록 (순서 유지)")


class InvoiceResponse(SQLModel):
    id: str = Field(..., description="송장 고유 ID")
    number: int = Field(..., ge=1, description="권한 서비스가 부여하는 순차 번호")
    status: InvoiceStatus = Field(..., description="송장 상태 (ABERTA / FECHADA)")
    items: List[InvoiceItemResponse] = Field(default_factory=list, description="송장 품목 목록")
    created_at: datetime = Field(..., description="레코드 생성 일시")
    updated_at: datetime = Field(..., description="레코드 마지막 업데이트 일시")
    closed_at: Optional[datetime] = Field(None, description="CLOSED 로 전이된 일시")

    @property
    def is_open(self) -> bool:
        return self.status == InvoiceStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return self.status == InvoiceStatus.CLOSED

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class PrintResponse(SQLModel):
    success: bool = Field(..., description="print 성공 여부")
    message: str = Field("", description="결과 메시지")
    # 권한 서비스가 송장 전체 또는 일부 필드만 돌려줄 수 있으므로 원본 객체를 그대로 보관합니다.
    invoice: Optional[Dict[str, Any]] = Field(None, description="CLOSED 로 전이된 송장 (있는 경우)")
