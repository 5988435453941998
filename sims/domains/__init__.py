# sims/domains/__init__.py

"""
비즈니스 도메인 패키지입니다.

- `inv`: 재고 권한 서비스가 소유하는 상품(Product)과 클라이언트 측 잔량 캐시.
- `bil`: 청구 권한 서비스가 소유하는 송장(Invoice)과 초안/수명 주기 로직.
"""
