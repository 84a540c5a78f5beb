"""애플리케이션 설정"""
from pydantic_settings import BaseSettings
from pydantic import Field
import os


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 데이터베이스
    database_url: str = Field(default="sqlite+aiosqlite:///./catalog.db")

    # 로깅
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # API 설정
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_reload: bool = Field(default=False)

    # CJ Dropshipping 설정
    cj_api_url: str = Field(default="https://developers.cjdropshipping.com/api2.0/")
    cj_account_email: str = Field(default="")

    # 공급사 호출 제한 (CJ는 초당 1회, 인증은 5분에 1회)
    request_timeout: float = Field(default=30.0)
    fetch_timeout_seconds: float = Field(default=60.0)  # 상세 + 옵션 조회 전체
    request_spacing_seconds: float = Field(default=1.1)
    auth_cooldown_seconds: int = Field(default=300)
    default_rate_limit_wait_seconds: int = Field(default=300)
    token_min_remaining_minutes: int = Field(default=10)

    # 가격 정책
    default_markup: float = Field(default=0.3)
    max_markup: float = Field(default=5.0)
    compare_at_extra_markup: float = Field(default=0.5)

    # 드랍십 상품은 재고를 추적하지 않는다
    dropship_inventory: int = Field(default=999)

    class Config:
        # .env 파일이 있는 경우에만 읽기
        env_file = ".env" if os.path.exists(".env") else None
        case_sensitive = False


# 전역 설정 인스턴스
settings = Settings()


def get_settings() -> Settings:
    """설정 인스턴스 반환"""
    return settings
