# sims/domains/bil/__init__.py

"""
'bil' 도메인 패키지입니다.

송장(Invoice)은 청구 권한 서비스가 소유합니다.
송장은 OPEN 상태로 생성되고, print 에 의해 정확히 한 번 CLOSED 로 전이되며,
CLOSED 송장은 다시 바뀌지 않습니다.

주요 서브모듈:
- `schemas.py`: 송장/품목/print 응답 스키마와 상태 토큰 ("ABERTA", "FECHADA").
- `client.py`: 청구 권한 서비스 REST 클라이언트.
- `draft.py`: 송장 초안 작성기 (캐시 기반의 낙관적 수량 검증).
- `lifecycle.py`: 송장 수명 주기 컨트롤러 (print 가드, 진행 중 print 1건 제한).
- `crud.py`, `services.py`, `routers.py`: 청구 권한 서비스의 참조 구현.
"""

__title__ = "SIMS Billing Domain"
__all__ = []
