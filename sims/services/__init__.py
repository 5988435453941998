# sims/services/__init__.py

"""
여러 도메인에 걸친 조정 로직을 담는 서비스 계층 패키지입니다.

- `stock_client.py`: 청구 권한 서비스가 재고 권한 서비스를 호출하기 위한 HTTP 클라이언트.
- `invoicing_core.py`: 클라이언트 코어(캐시, 초안, 수명 주기 컨트롤러)를 조립하는 진입점.
"""

__title__ = "SIMS Services"
__all__ = []
