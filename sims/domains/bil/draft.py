# sims/domains/bil/draft.py

"""
송장 초안(Draft) 작성기 모듈입니다.

초안은 클라이언트 로컬에만 존재하며, 생성 요청 전까지 저장되지 않습니다.
수량 검증은 `BalanceCache` 스냅샷을 기준으로 하는 낙관적(best-effort) 검사일 뿐이며,
최종 판단은 생성/print 시점에 청구 권한 서비스가 합니다.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from sims.core.errors import DraftValidationError
from sims.domains.bil import schemas as bil_schemas
from sims.domains.inv import schemas as inv_schemas
from sims.domains.inv.cache import BalanceCache

logger = logging.getLogger(__name__)


class LineValidity(str, Enum):
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class DraftLine:
    product_id: Optional[str] = None
    quantity: Optional[int] = 1


class InvoiceDraftBuilder:
    """
    순서가 있는 가변 길이의 초안 줄 목록을 관리합니다.
    줄 추가/삭제는 메모리 안에서만 일어나며 다른 부수 효과가 없습니다.
    """

    def __init__(self, balance_cache: BalanceCache):
        self._cache = balance_cache
        self._lines: List[DraftLine] = []

    @property
    def lines(self) -> Tuple[DraftLine, ...]:
        return tuple(DraftLine(line.product_id, line.quantity) for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def add_line(self, product_id: Optional[str] = None, quantity: Optional[int] = 1) -> int:
        """줄을 끝에 추가하고 그 인덱스를 반환합니다. 기본 수량은 1 입니다."""
        self._lines.append(DraftLine(product_id=product_id, quantity=quantity))
        return len(self._lines) - 1

    def remove_line(self, index: int) -> DraftLine:
        """위치로 줄을 삭제합니다. 뒤의 줄들은 한 칸씩 앞으로 당겨집니다."""
        self._check_index(index)
        return self._lines.pop(index)

    def set_product(self, index: int, product_id: Optional[str]) -> None:
        self._check_index(index)
        self._lines[index].product_id = product_id

    def set_quantity(self, index: int, quantity: Optional[int]) -> None:
        self._check_index(index)
        self._lines[index].quantity = quantity

    def clear(self) -> None:
        self._lines.clear()

    def available_products(self) -> List[inv_schemas.ProductResponse]:
        """초안에 고를 수 있는 상품 (캐시 기준 잔량 > 0)."""
        return [product for product in self._cache.current() if product.balance > 0]

    def selected_product(self, index: int) -> Optional[inv_schemas.ProductResponse]:
        self._check_index(index)
        product_id = self._lines[index].product_id
        return self._cache.get(product_id) if product_id else None

    # =========================================================================
    # 검증
    # =========================================================================
    def validate_line(self, index: int) -> LineValidity:
        """
        캐시 스냅샷 기준으로 `0 < quantity <= product.balance` 이면 VALID 입니다.

        상품이나 수량이 비어 있는 줄은 이 검사에서는 VALID(미완성)로 보고,
        필수 입력 검사(`is_line_complete`)에서 거부합니다.
        캐시에 없는 상품도 VALID 로 두며, 판단은 권한 서비스에 맡깁니다.
        """
        self._check_index(index)
        line = self._lines[index]
        if not line.product_id or line.quantity is None:
            return LineValidity.VALID
        if line.quantity <= 0:
            return LineValidity.INVALID

        product = self._cache.get(line.product_id)
        if product is None:
            return LineValidity.VALID
        return LineValidity.VALID if line.quantity <= product.balance else LineValidity.INVALID

    def is_line_complete(self, index: int) -> bool:
        """필수 입력 검사: 상품이 선택되어 있고 수량이 1 이상이어야 합니다."""
        self._check_index(index)
        line = self._lines[index]
        return bool(line.product_id) and line.quantity is not None and line.quantity >= 1

    def validate(self) -> None:
        """
        모든 줄에 대해 필수 입력 검사와 수량 검사를 수행합니다.
        실패하면 네트워크 요청 없이 `DraftValidationError` 를 발생시킵니다.
        """
        if not self._lines:
            raise DraftValidationError("The invoice must have at least one item.")

        for index in range(len(self._lines)):
            if not self.is_line_complete(index):
                raise DraftValidationError(
                    f"Item {index + 1} is missing a product or a valid quantity.", line_index=index
                )
        for index in range(len(self._lines)):
            if self.validate_line(index) is LineValidity.INVALID:
                raise DraftValidationError(
                    f"Quantity requested for item {index + 1} exceeds the available balance.",
                    line_index=index,
                )

    def build_submission(self) -> bil_schemas.InvoiceCreate:
        """
        검증을 통과한 초안을 {product_id, quantity} 목록만 담은 DTO 로 변환합니다.
        표시용 필드(코드, 설명)는 버립니다.
        """
        self.validate()
        submission = bil_schemas.InvoiceCreate(
            items=[
                bil_schemas.InvoiceItemCreate(product_id=line.product_id, quantity=line.quantity)
                for line in self._lines
            ]
        )
        logger.debug("Draft with %d line(s) ready for submission.", len(submission.items))
        return submission

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._lines):
            raise IndexError(f"Draft has no line at position {index}.")
