# sims/core/config.py

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# 프로젝트의 루트 디렉토리 경로를 계산합니다.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """
    애플리케이션의 모든 설정을 정의하는 Pydantic BaseSettings 모델입니다.
    환경 변수 및 .env 파일에서 값을 자동으로 로드합니다.
    """

    # --- Pydantic Settings 설정 ---
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, '.env'),
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=True
    )

    # --- 애플리케이션 기본 설정 ---
    APP_NAME: str = "SIMS"
    APP_VERSION: str = "0.1.0"
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    DEBUG_MODE: bool = Field(False, description="Enable debug mode for detailed logging")
    LOG_LEVEL: str = Field("INFO", description="Root log level used by logging.basicConfig")

    # --- 권한 서비스 주소 ---
    STOCK_SERVICE_URL: str = Field("http://localhost:8081", description="Base URL of the inventory authority")
    BILLING_SERVICE_URL: str = Field("http://localhost:8082", description="Base URL of the invoicing authority")
    API_PREFIX: str = Field("/api", description="Route prefix shared by both authorities")

    # --- HTTP 설정 ---
    # None 이면 클라이언트 측 타임아웃을 두지 않습니다. (전송 계층 타임아웃에만 의존)
    HTTP_TIMEOUT_SECONDS: Optional[float] = Field(None, description="Client-side timeout for calls made by the core")
    # 청구 서비스가 재고 서비스를 호출할 때 사용하는 타임아웃
    STOCK_CLIENT_TIMEOUT_SECONDS: float = Field(10.0, description="Timeout of the invoicing -> inventory calls")

    # --- 에러 분류 설정 ---
    # print 중 503은 관례상 '재고 서비스에 도달하지 못함'을 의미합니다. 계약이 다르면 여기서 변경합니다.
    DEPENDENCY_UNAVAILABLE_STATUS_CODES: List[int] = Field(
        default_factory=lambda: [503],
        description="Status codes classified as DependencyUnavailable",
    )

    def model_post_init(self, __context) -> None:  # noqa: ANN001
        # URL 끝의 '/'는 경로 조합 시 중복되므로 제거합니다.
        self.STOCK_SERVICE_URL = self.STOCK_SERVICE_URL.rstrip("/")
        self.BILLING_SERVICE_URL = self.BILLING_SERVICE_URL.rstrip("/")

    @property
    def stock_api_url(self) -> str:
        return f"{self.STOCK_SERVICE_URL}{self.API_PREFIX}"

    @property
    def billing_api_url(self) -> str:
        return f"{self.BILLING_SERVICE_URL}{self.API_PREFIX}"


settings = Settings()
