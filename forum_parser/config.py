"""
파서 설정
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv

load_dotenv()


class ParserConfig(BaseSettings):
    """포럼 게시글 파서 설정"""

    # 입력 제한
    max_input_length: int = Field(default=100000, description="본문/제목 최대 길이 (문자)")

    # 스타 레이팅 허용 범위
    star_rating_min: float = Field(default=0.5, description="최소 스타 레이팅")
    star_rating_max: float = Field(default=20.0, description="최대 스타 레이팅")

    # 날짜 허용 연도
    date_year_min: int = Field(default=2020, description="허용 최소 연도")
    date_year_max: int = Field(default=2030, description="허용 최대 연도")

    # URL 검증
    url_max_length: int = Field(default=2048, description="URL 최대 길이")
    url_min_length: int = Field(default=10, description="URL 최소 길이")
    url_scan_max_content: int = Field(default=50000, description="URL 스캔 최대 본문 길이")
    banner_url_max_length: int = Field(default=500, description="배너 URL 최대 길이")

    # 디스코드 초대 코드
    discord_code_min_length: int = 3
    discord_code_max_length: int = 20

    # 제목
    title_min_length: int = Field(default=3, description="정리된 제목 최소 길이")

    # 배지 신호 (대회 리포트 생성 링크)
    badge_report_url_marker: str = Field(
        default="tcomm.hivie.tn/reports/create",
        description="배지 대회 리포트 생성 URL 조각"
    )

    class Config:
        env_prefix = "PARSER_"
        case_sensitive = False


class OsuApiConfig(BaseSettings):
    """osu! API v2 설정 (호스트 조회용)"""

    client_id: str = Field(default="", description="OAuth 클라이언트 ID")
    client_secret: str = Field(default="", description="OAuth 클라이언트 시크릿")

    api_base: str = "https://osu.ppy.sh/api/v2"
    token_url: str = "https://osu.ppy.sh/oauth/token"

    # 요청 설정
    request_timeout: float = Field(default=30.0, description="요청 타임아웃 (초)")
    rate_limit_delay: float = Field(default=0.25, description="요청 간 최소 간격 (초)")
    max_retries: int = Field(default=3, description="최대 재시도 횟수")
    backoff_base: float = Field(default=2.0, description="레이트 리밋 백오프 기준 (초)")

    user_agent: str = "TourneyParser/1.0"

    class Config:
        env_prefix = "OSU_"
        case_sensitive = False


# 전역 설정 인스턴스
parser_config = ParserConfig()
osu_api_config = OsuApiConfig()
