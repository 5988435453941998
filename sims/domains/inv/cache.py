# sims/domains/inv/cache.py

"""
상품 잔량 캐시(Balance Cache) 모듈입니다.

재고 권한 서비스가 소유한 상품 목록의 마지막 스냅샷을 보관하는
read-through / write-invalidate 캐시이며, TTL 은 없습니다.

- `refresh()`: 권한 서비스에서 전체 상품 목록을 가져와 스냅샷을 한 번에 교체합니다.
- `current()`: 최신 스냅샷을 동기적으로 반환합니다.

스냅샷은 불변 튜플이므로 읽는 쪽이 부분적으로 교체된 상태를 볼 수 없습니다.
동시에 진행된 refresh 는 응답이 나중에 도착한 쪽이 이깁니다 (병합하지 않음).
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from sims.domains.inv import schemas as inv_schemas
from sims.domains.inv.client import ProductClient

logger = logging.getLogger(__name__)

Snapshot = Tuple[inv_schemas.ProductResponse, ...]
Subscriber = Callable[[Snapshot], None]


class BalanceCache:
    """
    명시적으로 소유되는 가변 스냅샷입니다. 전역 싱글톤이 아닙니다.
    """

    def __init__(self, product_client: ProductClient):
        self._client = product_client
        self._snapshot: Snapshot = ()
        self._index: Dict[str, inv_schemas.ProductResponse] = {}
        self._subscribers: List[Subscriber] = []
        self.refresh_count = 0

    def current(self) -> Snapshot:
        return self._snapshot

    def get(self, product_id: str) -> Optional[inv_schemas.ProductResponse]:
        """스냅샷에서 상품을 ID 로 찾습니다. 없으면 None."""
        return self._index.get(product_id)

    async def refresh(self) -> Snapshot:
        """
        권한 서비스의 상품 목록으로 스냅샷을 교체합니다.

        실패하면 이전 스냅샷을 그대로 두고, refresh 를 요청한 호출자에게 에러를 전달합니다.
        수동 구독자에게는 실패를 알리지 않습니다.
        """
        products = await self._client.list_products()

        #  스냅샷과 인덱스를 먼저 모두 만든 뒤 교체합니다.
        snapshot: Snapshot = tuple(products)
        index = {product.id: product for product in snapshot}
        self._snapshot, self._index = snapshot, index
        self.refresh_count += 1
        logger.debug("Balance cache refreshed with %d products.", len(snapshot))

        for subscriber in list(self._subscribers):
            subscriber(snapshot)
        return snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        refresh 성공 시마다 새 스냅샷을 받을 콜백을 등록합니다.
        반환된 함수를 호출하면 구독이 해제됩니다.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
