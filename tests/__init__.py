# tests/__init__.py

"""
SIMS 테스트 스위트 패키지입니다.

- `conftest.py`: 두 참조 권한 서비스 앱, ASGITransport 기반 클라이언트,
                 MockTransport 기반 스크립트 코어 등 공용 픽스처.
- `core/`: 에러 분류기 등 공용 모듈 테스트.
- `domains/`: 도메인별(inv, bil) 통합 테스트.
"""

__title__ = "SIMS Tests"
__description__ = "Test suite for the SIMS invoicing core and reference authorities."
__version__ = "0.1.0"
__all__ = []
