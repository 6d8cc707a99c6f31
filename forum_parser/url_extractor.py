"""
URL ID 추출기

대회 관련 외부 서비스 URL에서 고유 ID/슬러그만 추출한다:
- Google Sheets, Google Forms, osu! 포럼, Challonge, YouTube, Twitch

타입별로 식별 패턴(느슨함), 추출 패턴(ID 캡처), ID 형식 검증(정규식 + 최대 길이)을
분리해서 겉모양만 비슷한 URL이 잘못된 ID를 남기지 않도록 한다.
"""
import re
from typing import Dict, List, Optional, Any

from loguru import logger
from pydantic import HttpUrl, TypeAdapter, ValidationError as PydanticValidationError

from .config import parser_config, ParserConfig
from .models import ExtractedUrlIds
from .sanitizer import force_utf8

# extract_all_url_ids 결과에 포함되는 서비스 키
URL_ID_KEYS = ["google_sheets", "google_forms", "challonge", "youtube", "twitch"]

# 타입 식별 패턴 (느슨함)
IDENTIFICATION_PATTERNS: Dict[str, re.Pattern] = {
    "google_sheets": re.compile(r"docs\.google\.com/spreadsheets/d/[a-zA-Z0-9_-]+", re.IGNORECASE),
    "google_forms": re.compile(r"(?:docs\.google\.com/forms/d/|forms\.gle/)", re.IGNORECASE),
    "osu_forum": re.compile(r"osu\.ppy\.sh/(?:community/forums/topics|forum/t)/[0-9]+", re.IGNORECASE),
    "challonge": re.compile(r"challonge\.com/(?:tournaments/)?[a-zA-Z0-9_-]+", re.IGNORECASE),
    "youtube": re.compile(r"(?:youtube\.com/(?:watch|embed|v/)|youtu\.be/)", re.IGNORECASE),
    "twitch": re.compile(r"twitch\.tv/", re.IGNORECASE),
}

# 타입별 추출 패턴 + ID 검증
EXTRACTION_PATTERNS: Dict[str, Dict[str, Any]] = {
    "google_sheets": {
        "patterns": [
            re.compile(r"docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]{3,})", re.IGNORECASE),
        ],
        "id_validation": re.compile(r"^[a-zA-Z0-9_-]{28,}$"),
        "max_length": 50,
    },
    "google_forms": {
        "patterns": [
            re.compile(r"docs\.google\.com/forms/d/(?:e/)?([a-zA-Z0-9_-]{20,})", re.IGNORECASE),
            re.compile(r"forms\.gle/([a-zA-Z0-9_-]+)", re.IGNORECASE),
        ],
        "id_validation": re.compile(r"^[a-zA-Z0-9_-]{10,}$"),
        "max_length": 100,
    },
    "osu_forum": {
        "patterns": [
            re.compile(r"osu\.ppy\.sh/community/forums/topics/([0-9]+)", re.IGNORECASE),
            re.compile(r"osu\.ppy\.sh/forum/t/([0-9]+)", re.IGNORECASE),
        ],
        "id_validation": re.compile(r"^[0-9]{1,10}$"),
        "max_length": 10,
    },
    "challonge": {
        "patterns": [
            re.compile(r"challonge\.com/(?:tournaments/)?([a-zA-Z0-9_-]+)(?:[/?#]|$)", re.IGNORECASE),
        ],
        "id_validation": re.compile(r"^[a-zA-Z0-9_-]{3,30}$"),
        "max_length": 30,
    },
    "youtube": {
        "patterns": [
            re.compile(r"youtube\.com/watch\?(?:[^&#]*&)*v=([a-zA-Z0-9_-]{11})(?:[&#]|$)", re.IGNORECASE),
            re.compile(r"youtu\.be/([a-zA-Z0-9_-]{11})(?:[?#]|$)", re.IGNORECASE),
            re.compile(r"youtube\.com/embed/([a-zA-Z0-9_-]{11})(?:[?#]|$)", re.IGNORECASE),
        ],
        "id_validation": re.compile(r"^[a-zA-Z0-9_-]{11}$"),
        "max_length": 11,
    },
    "twitch": {
        "patterns": [
            re.compile(r"twitch\.tv/videos/([0-9]{8,12})(?:[/?#]|$)"),
            re.compile(r"twitch\.tv/([a-zA-Z0-9_]{4,25})(?:[/?#]|$)", re.IGNORECASE),
        ],
        "id_validation": re.compile(r"^(?:[a-zA-Z0-9_]{4,25}|[0-9]{8,12})$"),
        "max_length": 25,
    },
}

URL_SCAN_PATTERN = re.compile(r"https?://[^\s<>\"'\[\]]+", re.IGNORECASE)
TRAILING_PUNCTUATION = ".,!?;:)]}"
DANGEROUS_SCHEME_PATTERN = re.compile(r"javascript:|data:|vbscript:|file:", re.IGNORECASE)
SUSPICIOUS_CHARS_PATTERN = re.compile(r"[<>\"'{}\\\r\n]")
HTTP_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
SCRIPT_BLOCK_PATTERN = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
JAVASCRIPT_PATTERN = re.compile(r"javascript:", re.IGNORECASE)

_http_url_adapter = TypeAdapter(HttpUrl)


def is_well_formed_url(url: str) -> bool:
    """일반 URL 문법 검사 (scheme + host)"""
    try:
        _http_url_adapter.validate_python(url)
    except PydanticValidationError:
        return False
    return True


class UrlExtractor:
    """외부 서비스 URL ID 추출기"""

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or parser_config

    # ==================== 서비스별 추출 ====================

    def extract_google_sheets_id(self, url: str) -> Optional[str]:
        """Google Sheets 문서 ID"""
        return self.extract_url_id(url, "google_sheets")

    def extract_google_forms_id(self, url: str) -> Optional[str]:
        """Google Forms 폼 ID (긴 형식 / forms.gle 단축 형식)"""
        return self.extract_url_id(url, "google_forms")

    def extract_osu_forum_id(self, url: str) -> Optional[str]:
        """osu! 포럼 토픽 ID"""
        return self.extract_url_id(url, "osu_forum")

    def extract_challonge_slug(self, url: str) -> Optional[str]:
        """Challonge 대회 슬러그"""
        return self.extract_url_id(url, "challonge")

    def extract_youtube_id(self, url: str) -> Optional[str]:
        """YouTube 영상 ID (watch?v= / youtu.be / embed)"""
        return self.extract_url_id(url, "youtube")

    def extract_twitch_id(self, url: str) -> Optional[str]:
        """Twitch 채널명 또는 영상 ID"""
        return self.extract_url_id(url, "twitch")

    # ==================== 본문 전체 추출 ====================

    def extract_all_url_ids(self, content: str) -> ExtractedUrlIds:
        """
        본문의 모든 URL에서 서비스별 ID 추출

        URL마다 첫 번째로 성공한 타입이 채택되고, 같은 서비스의 두 번째 이후 URL은 무시된다.
        """
        content = self._sanitize_content(content)
        extracted: ExtractedUrlIds = {}

        for url in self.find_urls(content):
            for url_type in URL_ID_KEYS:
                extracted_id = self.extract_url_id(url, url_type)
                if extracted_id is None:
                    continue
                if url_type not in extracted:
                    extracted[url_type] = extracted_id
                    logger.debug(f"URL ID 추출: {url_type}={extracted_id}")
                break

        return extracted

    def extract_url_id(self, url: str, url_type: str) -> Optional[str]:
        """URL 검증 후 지정 타입의 ID 추출 (실패 시 None)"""
        if url_type not in EXTRACTION_PATTERNS:
            raise ValueError(f"Unsupported extraction type: {url_type}")

        if not self.is_valid_url(url):
            return None

        config = EXTRACTION_PATTERNS[url_type]
        for pattern in config["patterns"]:
            match = pattern.search(url)
            if not match:
                continue
            extracted_id = match.group(1)
            if self._is_valid_id(extracted_id, config):
                return extracted_id

        return None

    # ==================== 검증 ====================

    def is_valid_url(self, url: str) -> bool:
        """URL 형식 및 보안 검증"""
        if not url:
            return False

        if len(url) > self.config.url_max_length or len(url) < self.config.url_min_length:
            return False

        if not is_well_formed_url(url):
            return False

        if DANGEROUS_SCHEME_PATTERN.search(url):
            return False

        if not HTTP_SCHEME_PATTERN.match(url):
            return False

        # URL 조작 가능성이 있는 문자
        if SUSPICIOUS_CHARS_PATTERN.search(url):
            return False

        return True

    def find_urls(self, content: str) -> List[str]:
        """본문에서 http(s) URL 목록 (중복 제거, 등장 순서 유지)"""
        urls: List[str] = []

        for match in URL_SCAN_PATTERN.finditer(content or ""):
            url = match.group(0).rstrip(TRAILING_PUNCTUATION)
            if url not in urls and self.is_valid_url(url):
                urls.append(url)

        return urls

    def _sanitize_content(self, content: str) -> str:
        content = force_utf8(content)
        content = SCRIPT_BLOCK_PATTERN.sub("", content)
        content = JAVASCRIPT_PATTERN.sub("", content)

        if len(content) > self.config.url_scan_max_content:
            content = content[:self.config.url_scan_max_content]

        return content

    @staticmethod
    def _is_valid_id(extracted_id: str, config: Dict[str, Any]) -> bool:
        return bool(config["id_validation"].match(extracted_id)) and len(extracted_id) <= config["max_length"]

    # ==================== 보조 API ====================

    def validate_extracted_id(self, extracted_id: str, url_type: str) -> bool:
        """URL 없이 ID 형식만 검증"""
        if url_type not in EXTRACTION_PATTERNS:
            return False
        return self._is_valid_id(extracted_id, EXTRACTION_PATTERNS[url_type])

    def get_pattern_info(self, url_type: str) -> Optional[Dict[str, Any]]:
        """타입별 추출 패턴 설정"""
        return EXTRACTION_PATTERNS.get(url_type)

    def get_supported_types(self) -> List[str]:
        """지원하는 타입 목록"""
        return list(EXTRACTION_PATTERNS.keys())

    def identify_url_type(self, url: str) -> Optional[str]:
        """URL이 속한 서비스 타입 (지원하지 않으면 None)"""
        if not self.is_valid_url(url):
            return None

        for url_type, pattern in IDENTIFICATION_PATTERNS.items():
            if pattern.search(url):
                return url_type

        return None

    @staticmethod
    def reconstruct_google_forms_url(form_id: str) -> str:
        """저장된 폼 ID로 URL 복원 (ID 길이로 긴/짧은 형식 구분)"""
        if len(form_id) >= 20:
            return f"https://forms.google.com/forms/d/e/{form_id}/viewform"
        return f"https://forms.gle/{form_id}"


def extract_all_url_ids(content: str) -> ExtractedUrlIds:
    """기본 설정으로 본문 전체 URL ID 추출"""
    return UrlExtractor().extract_all_url_ids(content)
