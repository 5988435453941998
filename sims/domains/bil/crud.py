# sims/domains/bil/crud.py

"""
청구 권한 서비스(참조 구현)의 메모리 저장소 모듈입니다.
송장 번호는 저장소가 1 부터 순차적으로 부여합니다. 삭제 경로는 없습니다.
"""

import asyncio
from typing import Dict, List, Optional

from sims.domains.bil import schemas as bil_schemas


class InvoiceCRUD:
    def __init__(self):
        self._invoices: Dict[str, bil_schemas.InvoiceResponse] = {}
        self._last_number = 0
        self._lock = asyncio.Lock()

    async def get(self, id: str) -> Optional[bil_schemas.InvoiceResponse]:
        return self._invoices.get(id)

    async def get_multi(self, *, skip: int = 0, limit: int = 100) -> List[bil_schemas.InvoiceResponse]:
        invoices = sorted(self._invoices.values(), key=lambda invoice: invoice.number)
        return invoices[skip:skip + limit]

    async def next_number(self) -> int:
        async with self._lock:
            self._last_number += 1
            return self._last_number

    async def create(self, *, db_obj: bil_schemas.InvoiceResponse) -> bil_schemas.InvoiceResponse:
        self._invoices[db_obj.id] = db_obj
        return db_obj

    async def update(self, *, db_obj: bil_schemas.InvoiceResponse) -> bil_schemas.InvoiceResponse:
        if db_obj.id not in self._invoices:
            raise KeyError(db_obj.id)
        self._invoices[db_obj.id] = db_obj
        return db_obj
