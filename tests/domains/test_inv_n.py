# tests/domains/test_inv_n.py

"""
'inv' 도메인 (상품 카탈로그와 잔량 캐시) 관련 테스트 모듈입니다.

- 재고 권한 서비스 API: 상품 생성/조회/수정, 코드 중복(409), all-or-nothing 재고 예약.
- 잔량 캐시: refresh 의 원자적 교체, 실패 시 이전 스냅샷 유지, 구독, 동시 refresh.
- 상품 서비스: 생성/수정 성공 시 무조건 refresh.
"""

import asyncio

import httpx
import pytest
from httpx import AsyncClient

from sims.core.errors import ClassifiedError, ErrorKind
from sims.domains.inv import schemas as inv_schemas
from sims.services.invoicing_core import InvoicingCore


async def create_product(api: AsyncClient, code: str, balance: int) -> dict:
    response = await api.post(
        "/api/products", json={"code": code, "description": f"{code} 설명", "balance": balance}
    )
    assert response.status_code == 201, response.text
    return response.json()


# =================================================================================
# 1. 재고 권한 서비스 API
# =================================================================================
@pytest.mark.asyncio
async def test_create_and_read_product(stock_api: AsyncClient):
    """(성공) 상품 생성 후 ID 와 목록으로 조회"""
    created = await create_product(stock_api, "P1", 5)
    assert created["code"] == "P1"
    assert created["balance"] == 5
    assert created["id"]

    response = await stock_api.get(f"/api/products/{created['id']}")
    assert response.status_code == 200
    assert response.json()["description"] == "P1 설명"

    response = await stock_api.get("/api/products")
    assert [p["code"] for p in response.json()] == ["P1"]


@pytest.mark.asyncio
async def test_create_product_with_duplicate_code(stock_api: AsyncClient):
    """(실패) 코드 중복 시 409"""
    await create_product(stock_api, "P1", 5)
    response = await stock_api.post("/api/products", json={"code": "P1", "description": "다른 상품", "balance": 1})
    assert response.status_code == 409
    assert "already exists" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_product_with_negative_balance(stock_api: AsyncClient):
    """(실패) 유효성: 음수 잔량은 422"""
    response = await stock_api.post("/api/products", json={"code": "NEG", "description": "음수", "balance": -1})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_read_nonexistent_product(stock_api: AsyncClient):
    response = await stock_api.get("/api/products/does-not-exist")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_product(stock_api: AsyncClient):
    """(성공) PUT 은 세 필드를 모두 교체합니다."""
    created = await create_product(stock_api, "P1", 5)
    response = await stock_api.put(
        f"/api/products/{created['id']}", json={"code": "P1-B", "description": "변경됨", "balance": 9}
    )
    assert response.status_code == 200
    assert response.json()["code"] == "P1-B"
    assert response.json()["balance"] == 9

    #  이전 코드는 다시 사용할 수 있습니다.
    await create_product(stock_api, "P1", 1)


@pytest.mark.asyncio
async def test_update_product_to_taken_code(stock_api: AsyncClient):
    first = await create_product(stock_api, "P1", 5)
    await create_product(stock_api, "P2", 5)
    response = await stock_api.put(
        f"/api/products/{first['id']}", json={"code": "P2", "description": "충돌", "balance": 5}
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_reserve_stock(stock_api: AsyncClient):
    """(성공) 모든 줄이 충분하면 각 잔량이 차감됩니다."""
    p1 = await create_product(stock_api, "P1", 5)
    p2 = await create_product(stock_api, "P2", 2)

    response = await stock_api.post("/api/products/reserve", json={"items": [
        {"product_id": p1["id"], "quantity": 3},
        {"product_id": p2["id"], "quantity": 2},
    ]})
    assert response.status_code == 200
    assert [r["new_balance"] for r in response.json()] == [2, 0]
    assert (await stock_api.get(f"/api/products/{p1['id']}")).json()["balance"] == 2
    assert (await stock_api.get(f"/api/products/{p2['id']}")).json()["balance"] == 0


@pytest.mark.asyncio
async def test_reserve_stock_is_all_or_nothing(stock_api: AsyncClient):
    """(실패) 한 줄이라도 부족하면 아무 잔량도 바뀌지 않습니다."""
    p1 = await create_product(stock_api, "P1", 5)
    p2 = await create_product(stock_api, "P2", 1)

    response = await stock_api.post("/api/products/reserve", json={"items": [
        {"product_id": p1["id"], "quantity": 3},
        {"product_id": p2["id"], "quantity": 2},
    ]})
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "Insufficient balance for P2" in detail["message"]
    assert [r["success"] for r in detail["results"]] == [True, False]

    assert (await stock_api.get(f"/api/products/{p1['id']}")).json()["balance"] == 5
    assert (await stock_api.get(f"/api/products/{p2['id']}")).json()["balance"] == 1


@pytest.mark.asyncio
async def test_reserve_stock_sums_repeated_lines(stock_api: AsyncClient):
    """(실패) 같은 상품이 여러 줄에 나오면 합계로 검사합니다."""
    p1 = await create_product(stock_api, "P1", 5)
    response = await stock_api.post("/api/products/reserve", json={"items": [
        {"product_id": p1["id"], "quantity": 3},
        {"product_id": p1["id"], "quantity": 3},
    ]})
    assert response.status_code == 400
    assert (await stock_api.get(f"/api/products/{p1['id']}")).json()["balance"] == 5


@pytest.mark.asyncio
async def test_reserve_unknown_product(stock_api: AsyncClient):
    response = await stock_api.post("/api/products/reserve", json={"items": [{"product_id": "missing", "quantity": 1}]})
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Product not found."


@pytest.mark.asyncio
async def test_reserve_stock_with_applied_key_is_replayed(stock_api: AsyncClient):
    """(성공) 이미 적용된 예약 키로 다시 요청하면 차감 없이 같은 결과를 돌려줍니다."""
    p1 = await create_product(stock_api, "P1", 5)
    batch = {"reservation_key": "inv-1", "items": [{"product_id": p1["id"], "quantity": 2}]}

    first = await stock_api.post("/api/products/reserve", json=batch)
    assert first.status_code == 200
    second = await stock_api.post("/api/products/reserve", json=batch)
    assert second.status_code == 200
    assert second.json() == first.json()
    assert (await stock_api.get(f"/api/products/{p1['id']}")).json()["balance"] == 3

    #  다른 키는 별도의 차감입니다.
    other = await stock_api.post("/api/products/reserve", json={**batch, "reservation_key": "inv-2"})
    assert other.status_code == 200
    assert (await stock_api.get(f"/api/products/{p1['id']}")).json()["balance"] == 1


@pytest.mark.asyncio
async def test_rejected_reservation_key_is_not_recorded(stock_api: AsyncClient):
    """(실패) 거부된 예약은 키를 기록하지 않으므로, 잔량이 채워진 뒤 같은 키로 다시 시도할 수 있습니다."""
    p1 = await create_product(stock_api, "P1", 1)
    batch = {"reservation_key": "inv-1", "items": [{"product_id": p1["id"], "quantity": 2}]}

    assert (await stock_api.post("/api/products/reserve", json=batch)).status_code == 400
    await stock_api.put(f"/api/products/{p1['id']}", json={"code": "P1", "description": "P1 설명", "balance": 4})
    assert (await stock_api.post("/api/products/reserve", json=batch)).status_code == 200
    assert (await stock_api.get(f"/api/products/{p1['id']}")).json()["balance"] == 2


# =================================================================================
# 2. 잔량 캐시 (Balance Cache)
# =================================================================================
@pytest.mark.asyncio
async def test_cache_refresh_replaces_snapshot(core: InvoicingCore, stock_api: AsyncClient):
    """(성공) refresh 는 권한 서비스의 목록으로 스냅샷을 교체합니다."""
    assert core.balance_cache.current() == ()

    p1 = await create_product(stock_api, "P1", 5)
    snapshot = await core.balance_cache.refresh()

    assert isinstance(snapshot, tuple)
    assert core.balance_cache.current() is snapshot
    assert core.balance_cache.get(p1["id"]).balance == 5
    assert core.balance_cache.get("missing") is None
    assert core.balance_cache.refresh_count == 1


@pytest.mark.asyncio
async def test_cache_refresh_failure_keeps_previous_snapshot(scripted_core_factory, product_payload):
    """(실패) refresh 가 실패하면 이전 스냅샷을 유지하고 호출자에게 분류된 에러를 전달합니다."""
    responses = [
        httpx.Response(200, json=[product_payload("p1", "P1", 5)]),
        httpx.Response(500, json={"detail": "boom"}),
    ]

    def stock_handler(request: httpx.Request) -> httpx.Response:
        if not responses:
            raise httpx.ConnectError("connection refused", request=request)
        return responses.pop(0)

    core = scripted_core_factory(stock_handler=stock_handler)
    before = await core.balance_cache.refresh()

    with pytest.raises(ClassifiedError) as exc_info:
        await core.balance_cache.refresh()
    assert exc_info.value.kind is ErrorKind.UNKNOWN
    assert core.balance_cache.current() is before

    with pytest.raises(ClassifiedError) as exc_info:
        await core.balance_cache.refresh()
    assert exc_info.value.kind is ErrorKind.CONNECTION_UNAVAILABLE
    assert core.balance_cache.current() is before
    assert core.balance_cache.refresh_count == 1


@pytest.mark.asyncio
async def test_cache_rejects_negative_balance_payload(scripted_core_factory, product_payload):
    """(실패) 잔량이 음수인 상품이 섞인 응답은 통째로 거부됩니다."""
    payloads = [
        [product_payload("p1", "P1", 5)],
        [product_payload("p1", "P1", 4), product_payload("p2", "P2", -1)],
    ]

    def stock_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payloads.pop(0))

    core = scripted_core_factory(stock_handler=stock_handler)
    await core.balance_cache.refresh()

    with pytest.raises(ClassifiedError):
        await core.balance_cache.refresh()
    assert [p.balance for p in core.balance_cache.current()] == [5]
    assert all(p.balance >= 0 for p in core.balance_cache.current())


@pytest.mark.asyncio
async def test_cache_subscribers(scripted_core_factory, product_payload):
    """(성공) 구독자는 refresh 성공 시에만 새 스냅샷을 받습니다."""
    responses = [
        httpx.Response(200, json=[product_payload("p1", "P1", 5)]),
        httpx.Response(503),
        httpx.Response(200, json=[]),
    ]
    core = scripted_core_factory(stock_handler=lambda request: responses.pop(0))

    received = []
    unsubscribe = core.balance_cache.subscribe(received.append)

    await core.balance_cache.refresh()
    with pytest.raises(ClassifiedError):
        await core.balance_cache.refresh()
    assert len(received) == 1
    assert received[0][0].code == "P1"

    unsubscribe()
    await core.balance_cache.refresh()
    assert len(received) == 1
    assert core.balance_cache.current() == ()


@pytest.mark.asyncio
async def test_concurrent_refreshes_last_arrival_wins(scripted_core_factory, product_payload):
    """(성공) 동시에 진행된 refresh 는 응답이 나중에 도착한 쪽의 스냅샷이 남습니다."""
    release_first = asyncio.Event()
    calls = 0

    async def stock_handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            await release_first.wait()
            return httpx.Response(200, json=[product_payload("p1", "P1", 1)])
        return httpx.Response(200, json=[product_payload("p1", "P1", 2)])

    core = scripted_core_factory(stock_handler=stock_handler)
    first = asyncio.create_task(core.balance_cache.refresh())
    while calls == 0:
        await asyncio.sleep(0)
    await core.balance_cache.refresh()
    assert core.balance_cache.get("p1").balance == 2

    release_first.set()
    await first
    assert core.balance_cache.get("p1").balance == 1
    assert core.balance_cache.refresh_count == 2


# =================================================================================
# 3. 상품 서비스 (생성/수정 후 refresh)
# =================================================================================
@pytest.mark.asyncio
async def test_create_product_refreshes_cache(core: InvoicingCore):
    """(성공) 상품 생성이 성공하면 캐시를 다시 읽습니다. (로컬 패치 없음)"""
    product = await core.products.create_product(
        inv_schemas.ProductCreate(code="P1", description="상품 1", balance=5)
    )
    assert core.balance_cache.refresh_count == 1
    assert core.balance_cache.get(product.id).balance == 5

    updated = await core.products.update_product(
        product.id, inv_schemas.ProductUpdate(code="P1", description="상품 1", balance=7)
    )
    assert updated.balance == 7
    assert core.balance_cache.refresh_count == 2
    assert core.balance_cache.get(product.id).balance == 7


@pytest.mark.asyncio
async def test_create_product_conflict_does_not_refresh(core: InvoicingCore):
    """(실패) 코드 중복은 Conflict 로 분류되며 캐시는 갱신되지 않습니다."""
    product_in = inv_schemas.ProductCreate(code="P1", description="상품 1", balance=5)
    await core.products.create_product(product_in)

    with pytest.raises(ClassifiedError) as exc_info:
        await core.products.create_product(product_in)
    assert exc_info.value.kind is ErrorKind.CONFLICT
    assert exc_info.value.status_code == 409
    assert core.balance_cache.refresh_count == 1


@pytest.mark.asyncio
async def test_get_missing_product_is_not_found(core: InvoicingCore):
    with pytest.raises(ClassifiedError) as exc_info:
        await core.products.get_product("missing")
    assert exc_info.value.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_list_products_refreshes_cache(core: InvoicingCore, stock_api: AsyncClient):
    await create_product(stock_api, "P1", 5)
    await create_product(stock_api, "P2", 0)
    snapshot = await core.products.list_products()
    assert [p.code for p in snapshot] == ["P1", "P2"]
    assert core.balance_cache.current() is snapshot
