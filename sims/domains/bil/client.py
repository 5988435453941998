# sims/domains/bil/client.py

"""
청구 권한 서비스(invoices)에 대한 REST 클라이언트 모듈입니다.
"""

from typing import List

from sims.core.http_client import AuthorityClient
from sims.domains.bil import schemas as bil_schemas


class InvoiceClient(AuthorityClient):
    """GET/POST /invoices 와 POST /invoices/{id}/print 엔드포인트를 호출합니다."""

    async def list_invoices(self) -> List[bil_schemas.InvoiceResponse]:
        response = await self.request("GET", "/invoices")
        return self.parse_list(response, bil_schemas.InvoiceResponse)

    async def get_invoice(self, invoice_id: str) -> bil_schemas.InvoiceResponse:
        response = await self.request("GET", f"/invoices/{invoice_id}")
        return self.parse(response, bil_schemas.InvoiceResponse)

    async def create_invoice(self, invoice_in: bil_schemas.InvoiceCreate) -> bil_schemas.InvoiceResponse:
        response = await self.request("POST", "/invoices", json=invoice_in.model_dump(mode="json"))
        return self.parse(response, bil_schemas.InvoiceResponse)

    async def print_invoice(self, invoice_id: str) -> bil_schemas.PrintResponse:
        """2xx 응답은 재고 차감과 CLOSED 전이가 모두 커밋되었음을 의미합니다."""
        response = await self.request("POST", f"/invoices/{invoice_id}/print", json={})
        return self.parse(response, bil_schemas.PrintResponse)
