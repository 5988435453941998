# sims/core/__init__.py

"""
애플리케이션 전반에서 사용하는 핵심 구성 요소 패키지입니다.

- `config.py`: 설정 및 환경 변수 관리 (Pydantic Settings).
- `errors.py`: 전송 결과/상태 코드를 도메인 에러 종류로 분류하는 에러 분류기.
- `http_client.py`: 모든 REST 협력자(권한 서비스)가 공유하는 httpx 클라이언트 기반 클래스.
- `dependencies.py`: 참조 권한 서비스의 FastAPI 의존성 주입 함수들.
"""

__title__ = "SIMS Core"
__version__ = "0.1.0"
__all__ = []
