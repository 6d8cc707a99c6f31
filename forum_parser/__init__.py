"""
osu! 포럼 대회 공지 메타데이터 파서

토픽 제목과 본문(BBCode/HTML 혼합, 영어/한국어)에서 대회 정보를 추출한다:
- 제목: 팀 형식, 랭크 범위, BWS, 게임 모드, 대회명
- 본문: 디스코드, 스타 레이팅, 등록 기간, 그랜드 파이널, 배너, 배지
- URL: 시트/폼/Challonge/YouTube/Twitch ID
- 필드별 추출 신뢰도
"""

from .config import ParserConfig, OsuApiConfig, parser_config, osu_api_config
from .exceptions import (
    ParserError,
    InputTooLarge,
    HostLookupError,
    AuthenticationError,
    RateLimitError,
    LookupNetworkError,
)
from .models import (
    GameMode,
    ConfidenceLevel,
    ExtractedUrlIds,
    FieldMatch,
    TitleMetadata,
    ContentMetadata,
    ParsedTournamentMetadata,
    ForumTopic,
    ParsedTopic,
)
from .normalizer import convert_rank_to_number, normalize_game_mode, parse_date
from .url_extractor import UrlExtractor, extract_all_url_ids
from .title_parser import TitleParser
from .content_parser import ContentParser
from .confidence import ConfidenceScorer
from .host_lookup import OsuUserLookup, CachedUserLookup
from .service import ForumPostParser, parse_forum_post

__all__ = [
    # Config
    "ParserConfig",
    "OsuApiConfig",
    "parser_config",
    "osu_api_config",
    # Exceptions
    "ParserError",
    "InputTooLarge",
    "HostLookupError",
    "AuthenticationError",
    "RateLimitError",
    "LookupNetworkError",
    # Models
    "GameMode",
    "ConfidenceLevel",
    "ExtractedUrlIds",
    "FieldMatch",
    "TitleMetadata",
    "ContentMetadata",
    "ParsedTournamentMetadata",
    "ForumTopic",
    "ParsedTopic",
    # Normalizers
    "convert_rank_to_number",
    "normalize_game_mode",
    "parse_date",
    # Parsers
    "UrlExtractor",
    "extract_all_url_ids",
    "TitleParser",
    "ContentParser",
    "ConfidenceScorer",
    # Host lookup
    "OsuUserLookup",
    "CachedUserLookup",
    # Service
    "ForumPostParser",
    "parse_forum_post",
]
