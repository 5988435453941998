# sims/domains/inv/services.py

"""
상품 카탈로그 흐름의 서비스 모듈입니다.

생성/수정이 성공하면 로컬 패치 대신 항상 `BalanceCache.refresh()` 를 호출합니다.
잔량 값은 권한 서비스의 상태를 반영해야 하며,
print 에 의한 차감은 서버 측에서 일어나므로 클라이언트가 계산할 수 없기 때문입니다.
"""

import logging

from sims.domains.inv import schemas as inv_schemas
from sims.domains.inv.cache import BalanceCache, Snapshot
from sims.domains.inv.client import ProductClient

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, product_client: ProductClient, balance_cache: BalanceCache):
        self.client = product_client
        self.cache = balance_cache

    async def list_products(self) -> Snapshot:
        """권한 서비스에서 목록을 다시 읽어 캐시를 갱신하고 스냅샷을 반환합니다."""
        return await self.cache.refresh()

    async def get_product(self, product_id: str) -> inv_schemas.ProductResponse:
        return await self.client.get_product(product_id)

    async def create_product(self, product_in: inv_schemas.ProductCreate) -> inv_schemas.ProductResponse:
        """
        상품을 생성한 뒤 캐시를 갱신합니다.
        갱신이 실패하면 그 에러가 그대로 호출자에게 전달됩니다. (생성 자체는 이미 완료된 상태)
        """
        product = await self.client.create_product(product_in)
        logger.info("Product %s created (code=%s).", product.id, product.code)
        await self.cache.refresh()
        return product

    async def update_product(
        self, product_id: str, product_in: inv_schemas.ProductUpdate
    ) -> inv_schemas.ProductResponse:
        product = await self.client.update_product(product_id, product_in)
        logger.info("Product %s updated (code=%s, balance=%d).", product.id, product.code, product.balance)
        await self.cache.refresh()
        return product
