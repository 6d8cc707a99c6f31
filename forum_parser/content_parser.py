"""
게시글 본문 파서

BBCode/HTML이 섞인 본문에서 디스코드 초대 코드, 스타 레이팅 구간, 등록 기간,
그랜드 파이널 날짜, 배너 이미지, 배지 여부를 추출한다.
호스트 이름은 본문이 아니라 작성자 ID로 외부 조회한다.
"""
import re
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from loguru import logger

from .config import parser_config, ParserConfig
from .models import ContentMetadata, FieldMatch
from .normalizer import format_datetime, parse_date, snap_to_sunday
from .url_extractor import is_well_formed_url

HostLookup = Callable[[int], Optional[str]]

NUMBER = r"(\d{1,2}(?:\.\d{1,2})?)"

IMAGEMAP_PATTERN = re.compile(r"\[imagemap\](.*?)\[/imagemap\]", re.IGNORECASE | re.DOTALL)
MARKUP_TAG_PATTERN = re.compile(r"\[/?[a-z*]+(?:=[^\]]*)?\]|<[^>]+>", re.IGNORECASE)


# =============================================================================
# 디스코드
# =============================================================================

DISCORD_RULES = [
    ("discord_gg", re.compile(r"(?:https?://)?(?:www\.)?discord\.gg/([a-zA-Z0-9-]+)", re.IGNORECASE)),
    ("discord_com_invite", re.compile(r"(?:https?://)?(?:www\.)?discord\.com/invite/([a-zA-Z0-9-]+)", re.IGNORECASE)),
    ("discordapp_invite", re.compile(r"(?:https?://)?(?:www\.)?discordapp\.com/invite/([a-zA-Z0-9-]+)", re.IGNORECASE)),
]


# =============================================================================
# 스타 레이팅
# =============================================================================

STAR_RATING_RULES = [
    ("bold_sr", re.compile(rf"\[b\]\s*SR\s*[=:]\s*{NUMBER}\s*\*?\s*\[/b\]", re.IGNORECASE)),
    ("colored_label_asterisk", re.compile(
        rf"\[color=[^\]]+\][^\[\]\n]*\[/color\][^\d\n]{{0,10}}{NUMBER}\s*\*", re.IGNORECASE)),
    ("paren_asterisk", re.compile(rf"\(\s*{NUMBER}\s*\*\s*\)")),
    ("bold_stage_paren_asterisk", re.compile(rf"\[b\][^\[\]\n]+\[/b\]\s*\(\s*{NUMBER}\s*\*\s*\)", re.IGNORECASE)),
    ("piped_bold_sr", re.compile(rf"\|\s*\[b\]\s*SR\s*[=:]\s*{NUMBER}", re.IGNORECASE)),
    ("bare_asterisk", re.compile(rf"(?<![\w.*]){NUMBER}\s*\*(?!\*)")),
]

QUALIFIER_KEYWORD_PATTERN = re.compile(r"\bqualifiers?\b|\bgroup\s+stage\b|예선", re.IGNORECASE)

FALLBACK_RANGE_RULES = [
    ("sr_range", re.compile(rf"\bSR\s*[:=]\s*{NUMBER}\s*[-~]\s*{NUMBER}", re.IGNORECASE)),
    ("prefixed_asterisk_range", re.compile(rf"\*\s*{NUMBER}\s*[-~]\s*\*\s*{NUMBER}")),
    ("black_star_range", re.compile(rf"{NUMBER}\s*★\s*[-~]\s*{NUMBER}\s*★")),
]

FALLBACK_SINGLE_RULES = [
    ("sr_single", re.compile(rf"\bSR\s*[:=]\s*{NUMBER}", re.IGNORECASE)),
    ("prefixed_asterisk", re.compile(rf"(?<!\*)\*\s*{NUMBER}")),
    ("black_star", re.compile(rf"{NUMBER}\s*★")),
]

FALLBACK_QUALIFIER_PATTERN = re.compile(
    rf"(?:\bqualifiers?\b|\bgroup\s+stage\b|예선)[^\n\d]*?"
    rf"(?:SR\s*[:=]\s*{NUMBER}|\*\s*{NUMBER}|{NUMBER}\s*[★*])",
    re.IGNORECASE,
)


# =============================================================================
# 등록 기간 / 그랜드 파이널
# =============================================================================

REGISTRATION_LABEL = r"(?:Player\s+)?Registrations?"
DATE_RANGE_SEPARATOR = r"\s+[-–~]\s+"

REGISTRATION_RULES = [
    ("registration_dash_pair", re.compile(
        rf"\b{REGISTRATION_LABEL}\s*(?:period|phase|dates?)?\s*:\s*([^\n]+?){DATE_RANGE_SEPARATOR}([^\n]+)",
        re.IGNORECASE), True),
    ("registration_to_pair", re.compile(
        rf"\b{REGISTRATION_LABEL}\s*(?:period|phase|dates?)?\s*:\s*([^\n]+?)\s+to\s+([^\n]+)",
        re.IGNORECASE), True),
    ("registration_end", re.compile(
        rf"\b{REGISTRATION_LABEL}\s+(?:ends?|close[sd]?|deadline)\s*:\s*([^\n]+)",
        re.IGNORECASE), False),
    ("registration_pipe_pair", re.compile(
        rf"\b{REGISTRATION_LABEL}\s*\|\s*([^\n|]+?){DATE_RANGE_SEPARATOR}([^\n|]+)",
        re.IGNORECASE), True),
]

GRAND_FINAL_PATTERN = re.compile(
    r"(?<!semi[\s-])(?<!quarter[\s-])\b(?:grand\s+finals?|GF|finals)\b\s*[:|\-]?\s*([^\n]+)",
    re.IGNORECASE,
)
DATE_SPLIT_PATTERN = re.compile(r"\s+[-–~]\s+|\s+to\s+", re.IGNORECASE)
BARE_DAY_PATTERN = re.compile(r"^\s*(\d{1,2})(?:st|nd|rd|th)?\b(.*)$", re.IGNORECASE)
MONTH_PREFIX_PATTERN = re.compile(r"^\s*([a-z]{3,9}\.?)\s+\d", re.IGNORECASE)


# =============================================================================
# 배너
# =============================================================================

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(?:jpg|jpeg|png|gif|webp)(?:\?.*)?$", re.IGNORECASE)

BANNER_RULES = [
    ("bbcode_img", re.compile(r"\[img\]\s*(https?://[^\[\s]+?)\s*\[/img\]", re.IGNORECASE)),
    ("imagemap", re.compile(r"\[imagemap\]\s*(https?://[^\s\[]+)", re.IGNORECASE)),
    ("html_img", re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE)),
    ("markdown_img", re.compile(r"!\[[^\]]*\]\((https?://[^)\s]+)\)", re.IGNORECASE)),
    ("bare_image_url", re.compile(
        r"(https?://[^\s\[\]<>\"']+\.(?:jpg|jpeg|png|gif|webp)(?:\?[^\s\[\]<>\"']*)?)", re.IGNORECASE)),
]


# =============================================================================
# 배지
# =============================================================================

BADGE_NEGATIVE_PATTERNS = [
    re.compile(r"\bunbadged?\b", re.IGNORECASE),
    re.compile(r"\bnon[\s-]?badged\b", re.IGNORECASE),
    re.compile(r"\bno\s+badges?\b", re.IGNORECASE),
    re.compile(r"(?:배지|뱃지)\s*(?:없음|미지급|X)"),
]
BADGE_POSITIVE_PATTERNS = [
    re.compile(r"\bbadged?\b", re.IGNORECASE),
    re.compile(r"배지|뱃지"),
]


def strip_markup(text: str) -> str:
    """BBCode/HTML 태그 제거"""
    return MARKUP_TAG_PATTERN.sub("", text)


class ContentParser:
    """포럼 게시글 본문 메타데이터 파서"""

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        host_lookup: Optional[HostLookup] = None,
        reference_date: Optional[datetime] = None,
    ):
        self.config = config or parser_config
        self.host_lookup = host_lookup
        self.reference_date = reference_date

    def parse(
        self, content: str, author_id: Optional[int] = None, reference_date: Optional[datetime] = None
    ) -> ContentMetadata:
        """본문 → ContentMetadata"""
        result = ContentMetadata()
        content = content or ""
        reference = reference_date or self.reference_date or datetime.now()

        result.host_name = self.lookup_host(author_id)
        if result.host_name:
            result.matches["host_name"] = FieldMatch(rule="author_lookup", raw=str(author_id))

        result.discord_link, rule = self.extract_discord_link(content)
        if rule:
            result.matches["discord_link"] = FieldMatch(rule=rule, raw=result.discord_link)

        stars = self.extract_star_ratings(content)
        result.star_rating_min, result.star_rating_max, result.star_rating_qualifier, rule = stars
        if rule:
            result.matches["star_rating"] = FieldMatch(rule=rule)

        open_date, close_date, rule = self.extract_registration_dates(content, reference)
        result.registration_open_date = format_datetime(open_date)
        result.registration_close_date = format_datetime(close_date)
        if rule:
            result.matches["registration"] = FieldMatch(rule=rule)

        result.end_date = format_datetime(self.extract_end_date(content, reference))

        result.banner_url, rule = self.extract_banner_url(content)
        if rule:
            result.matches["banner_url"] = FieldMatch(rule=rule, raw=result.banner_url)

        result.has_badge = self.extract_badge_status(content)

        return result

    # ==================== 호스트 ====================

    def lookup_host(self, author_id: Optional[int]) -> Optional[str]:
        """작성자 ID로 호스트 이름 조회 (실패 시 None, 예외 전파 없음)"""
        if author_id is None or self.host_lookup is None:
            return None
        try:
            name = self.host_lookup(author_id)
        except Exception as e:
            logger.warning(f"호스트 조회 실패 (user_id={author_id}): {e}")
            return None
        return name.strip() if name and name.strip() else None

    # ==================== 디스코드 ====================

    def extract_discord_link(self, content: str) -> Tuple[Optional[str], Optional[str]]:
        """디스코드 초대 코드 (본문 → imagemap 순서)"""
        main_body = IMAGEMAP_PATTERN.sub("", content)
        code, rule = self._find_discord_code(main_body)
        if code:
            return code, rule

        for block in IMAGEMAP_PATTERN.findall(content):
            code, rule = self._find_discord_code(block)
            if code:
                return code, f"imagemap_{rule}"

        return None, None

    def _find_discord_code(self, text: str) -> Tuple[Optional[str], Optional[str]]:
        for rule, pattern in DISCORD_RULES:
            for match in pattern.finditer(text):
                code = match.group(1)
                if self.config.discord_code_min_length <= len(code) <= self.config.discord_code_max_length:
                    return code, rule
        return None, None

    # ==================== 스타 레이팅 ====================

    def extract_star_ratings(
        self, content: str
    ) -> Tuple[Optional[float], Optional[float], Optional[float], Optional[str]]:
        """(min, max, qualifier, 규칙명)"""
        ratings = self._scan_star_ratings(content)
        if ratings:
            qualifier = None
            if QUALIFIER_KEYWORD_PATTERN.search(content):
                qualifier, ratings = ratings[0], ratings[1:]
            if not ratings:
                return None, None, qualifier, "bracket_notation"
            return min(ratings), max(ratings), qualifier, "bracket_notation"

        return self._fallback_star_ratings(content)

    def _in_bounds(self, value: float) -> bool:
        return self.config.star_rating_min <= value <= self.config.star_rating_max

    def _scan_star_ratings(self, content: str) -> List[float]:
        """모든 패턴 매칭을 위치순으로 정렬 후 중복 제거"""
        found: List[Tuple[int, float]] = []
        for rule, pattern in STAR_RATING_RULES:
            for match in pattern.finditer(content):
                value = float(match.group(1))
                if not self._in_bounds(value):
                    logger.debug(f"스타 레이팅 범위 밖 ({rule}): {value}")
                    continue
                found.append((match.start(1), value))

        ratings: List[float] = []
        for _, value in sorted(found, key=lambda item: item[0]):
            if value not in ratings:
                ratings.append(value)
        return ratings

    def _fallback_star_ratings(
        self, content: str
    ) -> Tuple[Optional[float], Optional[float], Optional[float], Optional[str]]:
        qualifier = None
        qualifier_match = FALLBACK_QUALIFIER_PATTERN.search(content)
        if qualifier_match:
            value = float(next(g for g in qualifier_match.groups() if g))
            if self._in_bounds(value):
                qualifier = value

        for rule, pattern in FALLBACK_RANGE_RULES:
            for match in pattern.finditer(content):
                low, high = float(match.group(1)), float(match.group(2))
                if not (self._in_bounds(low) and self._in_bounds(high)):
                    continue
                if low > high:
                    low, high = high, low
                if qualifier is not None:
                    if abs(low - qualifier) < 0.01:
                        low = high
                    elif abs(high - qualifier) < 0.01:
                        high = low
                return low, high, qualifier, rule

        for rule, pattern in FALLBACK_SINGLE_RULES:
            for match in pattern.finditer(content):
                value = float(match.group(1))
                if not self._in_bounds(value):
                    continue
                if qualifier is not None and abs(value - qualifier) < 0.01:
                    return None, None, qualifier, rule
                return value, value, qualifier, rule

        return None, None, qualifier, "fallback_qualifier" if qualifier is not None else None

    # ==================== 등록 기간 ====================

    def extract_registration_dates(
        self, content: str, reference: Optional[datetime] = None
    ) -> Tuple[Optional[datetime], Optional[datetime], Optional[str]]:
        """(open, close, 규칙명). 마감만 있는 경우 open은 None"""
        text = strip_markup(content)

        for rule, pattern, is_pair in REGISTRATION_RULES:
            for match in pattern.finditer(text):
                if is_pair:
                    left, right = match.group(1).strip(), match.group(2).strip()
                    open_date = parse_date(left, reference)
                    close_date = parse_date(_borrow_month(left, right), reference)
                    if open_date and close_date and open_date > close_date:
                        open_date, close_date = close_date, open_date
                else:
                    open_date = None
                    close_date = parse_date(match.group(1).strip(), reference)

                if open_date or close_date:
                    logger.debug(f"등록 기간 규칙 '{rule}': {open_date} ~ {close_date}")
                    return open_date, close_date, rule

        return None, None, None

    # ==================== 그랜드 파이널 ====================

    def extract_end_date(self, content: str, reference: Optional[datetime] = None) -> Optional[datetime]:
        """그랜드 파이널 날짜 중 가장 늦은 날짜를 해당 주 일요일로 스냅"""
        text = strip_markup(content)
        latest: Optional[datetime] = None

        for match in GRAND_FINAL_PATTERN.finditer(text):
            value = match.group(1)
            parts = DATE_SPLIT_PATTERN.split(value)
            for index, part in enumerate(parts):
                if index > 0:
                    part = _borrow_month(parts[0], part)
                parsed = parse_date(part, reference)
                if parsed and (latest is None or parsed > latest):
                    latest = parsed

        if latest is None:
            return None
        return snap_to_sunday(latest)

    # ==================== 배너 ====================

    def extract_banner_url(self, content: str) -> Tuple[Optional[str], Optional[str]]:
        """첫 번째 유효한 배너 이미지 URL"""
        for rule, pattern in BANNER_RULES:
            for match in pattern.finditer(content):
                url = match.group(1).strip()
                if self.is_valid_image_url(url):
                    return url, rule
        return None, None

    def is_valid_image_url(self, url: str) -> bool:
        """이미지 URL 검증 (URL 문법 + 확장자 + 길이)"""
        return (
            len(url) <= self.config.banner_url_max_length
            and is_well_formed_url(url)
            and bool(IMAGE_EXTENSION_PATTERN.search(url))
        )

    # ==================== 배지 ====================

    def extract_badge_status(self, content: str) -> bool:
        """배지 대회 여부 (unbadged 명시가 최우선)"""
        for pattern in BADGE_NEGATIVE_PATTERNS:
            if pattern.search(content):
                return False

        if self.config.badge_report_url_marker and self.config.badge_report_url_marker.lower() in content.lower():
            return True

        return any(pattern.search(content) for pattern in BADGE_POSITIVE_PATTERNS)


def _borrow_month(left: str, right: str) -> str:
    """"August 1st - 15th" 처럼 오른쪽에 월이 없으면 왼쪽의 월 이름을 붙인다"""
    day = BARE_DAY_PATTERN.match(right)
    month = MONTH_PREFIX_PATTERN.match(left)
    if day and month and not re.search(r"[a-z]{3}", day.group(2)[:4], re.IGNORECASE):
        return f"{month.group(1)} {right.strip()}"
    return right
