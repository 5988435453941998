# sims/__init__.py

"""
SIMS (Stock & Invoicing Management System) 메인 패키지입니다.

이 패키지는 재고 권한 서비스(products)와 청구 권한 서비스(invoices)를 사용하는
클라이언트 코어와, 두 권한 서비스의 참조 구현(FastAPI)을 함께 담고 있습니다.

- `core`: 설정, 에러 분류기, 공용 HTTP 클라이언트, 의존성 주입 함수.
- `domains.inv`: 상품 카탈로그와 잔량 캐시(Balance Cache).
- `domains.bil`: 송장 초안(Draft), 송장 수명 주기(OPEN -> CLOSED) 컨트롤러.
- `services`: 도메인 간 조정 로직 (권한 서비스 간 통신, 클라이언트 코어 조립).
"""

APP_NAME = "SIMS"
APP_VERSION = "0.1.0"
API_PREFIX = "/api"  # 두 권한 서비스 라우트의 공통 접두사 (main.py에서 적용)

__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Stock & Invoicing Management System: invoice lifecycle and stock-consistency core."
__all__ = []
