# tests/domains/__init__.py

"""
도메인별 테스트 패키지입니다.

- `test_inv_n.py`: 재고 권한 서비스, 잔량 캐시, 상품 서비스.
- `test_bil_n.py`: 송장 초안, 수명 주기 컨트롤러, 청구 권한 서비스의 print.
"""

__title__ = "SIMS Domain Tests"
__all__ = []
