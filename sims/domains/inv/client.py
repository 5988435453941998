# sims/domains/inv/client.py

"""
재고 권한 서비스(products)에 대한 REST 클라이언트 모듈입니다.
"""

from typing import List

from sims.core.http_client import AuthorityClient
from sims.domains.inv import schemas as inv_schemas


class ProductClient(AuthorityClient):
    """GET/POST/PUT /products 엔드포인트를 호출합니다."""

    async def list_products(self) -> List[inv_schemas.ProductResponse]:
        response = await self.request("GET", "/products")
        return self.parse_list(response, inv_schemas.ProductResponse)

    async def get_product(self, product_id: str) -> inv_schemas.ProductResponse:
        response = await self.request("GET", f"/products/{product_id}")
        return self.parse(response, inv_schemas.ProductResponse)

    async def create_product(self, product_in: inv_schemas.ProductCreate) -> inv_schemas.ProductResponse:
        response = await self.request("POST", "/products", json=product_in.model_dump(mode="json"))
        return self.parse(response, inv_schemas.ProductResponse)

    async def update_product(
        self, product_id: str, product_in: inv_schemas.ProductUpdate
    ) -> inv_schemas.ProductResponse:
        response = await self.request("PUT", f"/products/{product_id}", json=product_in.model_dump(mode="json"))
        return self.parse(response, inv_schemas.ProductResponse)
