"""
데이터 모델 정의 (Pydantic)
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from enum import Enum


class GameMode(str, Enum):
    """게임 모드"""
    STD = "STD"
    TAIKO = "TAIKO"
    CATCH = "CATCH"
    MANIA4 = "MANIA4"
    MANIA7 = "MANIA7"
    MANIA0 = "MANIA0"    # 기타 키 수 / 키 수 미지정
    ETC = "ETC"


class ConfidenceLevel(str, Enum):
    """추출 신뢰도"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    FAILED = "failed"


# 서비스 키 → 추출된 ID
ExtractedUrlIds = Dict[str, str]


class FieldMatch(BaseModel):
    """필드별 매칭 규칙 정보 (신뢰도 계산 입력)"""
    rule: str = Field(..., description="매칭된 규칙 이름")
    raw: Optional[str] = Field(None, description="매칭된 원문 조각")


class TitleMetadata(BaseModel):
    """토픽 제목에서 추출한 정보"""
    title: Optional[str] = None
    team_vs: Optional[int] = None
    team_size: Optional[int] = None
    rank_range_min: Optional[int] = None
    rank_range_max: Optional[int] = None
    is_bws: bool = False
    game_mode: GameMode = GameMode.STD
    matches: Dict[str, FieldMatch] = Field(default_factory=dict)


class ContentMetadata(BaseModel):
    """게시글 본문에서 추출한 정보"""
    host_name: Optional[str] = None
    discord_link: Optional[str] = None
    star_rating_min: Optional[float] = None
    star_rating_max: Optional[float] = None
    star_rating_qualifier: Optional[float] = None
    registration_open_date: Optional[str] = None
    registration_close_date: Optional[str] = None
    end_date: Optional[str] = None
    banner_url: Optional[str] = None
    has_badge: bool = False
    matches: Dict[str, FieldMatch] = Field(default_factory=dict)


class ParsedTournamentMetadata(BaseModel):
    """파서 최종 결과 (저장 레이어가 레코드로 변환)"""
    title: Optional[str] = Field(None, description="정리된 대회명")
    host_name: Optional[str] = Field(None, description="호스트 (작성자 ID 조회)")
    team_vs: Optional[int] = Field(None, description="NvN 형식의 N")
    team_size: Optional[int] = Field(None, description="팀 인원")
    rank_range_min: Optional[int] = Field(None, description="랭크 하한 (포함)")
    rank_range_max: Optional[int] = Field(None, description="랭크 상한 (포함)")
    is_bws: bool = Field(default=False, description="BWS 적용 여부")
    game_mode: GameMode = Field(default=GameMode.STD, description="게임 모드")
    discord_link: Optional[str] = Field(None, description="디스코드 초대 코드")
    star_rating_min: Optional[float] = None
    star_rating_max: Optional[float] = None
    star_rating_qualifier: Optional[float] = None
    registration_open_date: Optional[str] = Field(None, description="YYYY-MM-DD HH:MM:SS")
    registration_close_date: Optional[str] = Field(None, description="YYYY-MM-DD HH:MM:SS")
    end_date: Optional[str] = Field(None, description="그랜드 파이널 (일요일 스냅)")
    banner_url: Optional[str] = None
    has_badge: bool = Field(default=False, description="배지 대회 여부")
    extraction_confidence: Dict[str, ConfidenceLevel] = Field(default_factory=dict)

    class Config:
        use_enum_values = True

    def to_record(self) -> Dict[str, Any]:
        """저장용 dict 변환"""
        return self.model_dump()


class ForumTopic(BaseModel):
    """토픽 소스가 제공하는 포럼 토픽"""
    topic_id: int = Field(..., description="포럼 토픽 ID")
    title: str = Field(default="", description="토픽 제목")
    body: str = Field(default="", description="첫 게시글 본문")
    author_id: Optional[int] = Field(None, description="작성자 osu! 유저 ID")


class ParsedTopic(BaseModel):
    """토픽 파싱 결과 (메타데이터 + URL ID)"""
    topic_id: int
    metadata: ParsedTournamentMetadata
    url_ids: ExtractedUrlIds = Field(default_factory=dict)
