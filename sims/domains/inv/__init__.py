# sims/domains/inv/__init__.py

"""
'inv' 도메인 패키지입니다.

상품(Product)은 재고 권한 서비스가 독점적으로 소유하며,
클라이언트는 `BalanceCache` 를 통해 읽기 전용 사본만 유지합니다.

주요 서브모듈:
- `schemas.py`: 상품 및 재고 예약 요청/응답 스키마.
- `client.py`: 재고 권한 서비스 REST 클라이언트.
- `cache.py`: 잔량 캐시 (스냅샷 + refresh).
- `services.py`: 카탈로그 변경 후 무조건 refresh 하는 상품 서비스.
- `crud.py`, `routers.py`: 재고 권한 서비스의 참조 구현 (메모리 저장소 + FastAPI 라우터).
"""

__title__ = "SIMS Inventory Domain"
__all__ = []
