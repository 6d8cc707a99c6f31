"""
단위 정규화 모듈
- 랭크 숫자 (#10,000 / 25k / 99.9k)
- 게임 모드 토큰 → GameMode
- 자유 형식 날짜 → datetime
"""
import re
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from .config import parser_config
from .models import GameMode


# =============================================================================
# 랭크 숫자
# =============================================================================

RANK_COMMA_PATTERN = re.compile(r"^\d{1,3}(?:,\d{3})+$")
RANK_DECIMAL_K_PATTERN = re.compile(r"^(\d+)\.(\d+)\s*k$", re.IGNORECASE)
RANK_K_PATTERN = re.compile(r"^(\d+)\s*k$", re.IGNORECASE)
RANK_PLAIN_PATTERN = re.compile(r"^\d+$")


def convert_rank_to_number(token: Optional[str]) -> Optional[int]:
    """랭크 토큰을 정수로 변환: "#10,000" → 10000, "25k" → 25000, "99.9k" → 99900"""
    if not token:
        return None

    value = token.strip().lstrip("#").strip()

    if RANK_COMMA_PATTERN.match(value):
        return int(value.replace(",", ""))

    match = RANK_DECIMAL_K_PATTERN.match(value)
    if match:
        # 99.9k → 99 * 1000 + 9 * 100
        return int(Decimal(f"{match.group(1)}.{match.group(2)}") * 1000)

    match = RANK_K_PATTERN.match(value)
    if match:
        return int(match.group(1)) * 1000

    if RANK_PLAIN_PATTERN.match(value):
        return int(value)

    return None


# =============================================================================
# 게임 모드
# =============================================================================

GAME_MODE_ALIASES = {
    # Standard
    "std": GameMode.STD,
    "standard": GameMode.STD,
    "osu": GameMode.STD,
    "osu!": GameMode.STD,
    "osu!std": GameMode.STD,
    "osu!standard": GameMode.STD,
    "o!std": GameMode.STD,
    "스탠다드": GameMode.STD,
    "스탠": GameMode.STD,
    # Taiko
    "taiko": GameMode.TAIKO,
    "osu!taiko": GameMode.TAIKO,
    "o!t": GameMode.TAIKO,
    "태고": GameMode.TAIKO,
    # Catch
    "ctb": GameMode.CATCH,
    "catch": GameMode.CATCH,
    "catch the beat": GameMode.CATCH,
    "fruits": GameMode.CATCH,
    "osu!catch": GameMode.CATCH,
    "o!c": GameMode.CATCH,
    "캐치": GameMode.CATCH,
    # 모드 혼합
    "multi": GameMode.ETC,
    "multimode": GameMode.ETC,
    "multi-mode": GameMode.ETC,
    "all modes": GameMode.ETC,
    "hybrid": GameMode.ETC,
    "mixed": GameMode.ETC,
}

MANIA_KEYWORD_PATTERN = re.compile(r"mania|o!m|매니아|마니아", re.IGNORECASE)
MANIA_KEYS_PATTERN = re.compile(r"(?<!\d)(\d{1,2})\s*k(?:eys?)?(?![a-z])", re.IGNORECASE)
KEY_ONLY_PATTERN = re.compile(r"^(\d{1,2})\s*k(?:eys?)?$", re.IGNORECASE)

# 단독 "4K" 같은 토큰을 매니아로 인정하는 키 수
VALID_KEY_COUNTS = set(range(1, 10)) | {18}


def _mania_from_keys(keys: Optional[int]) -> GameMode:
    if keys == 4:
        return GameMode.MANIA4
    if keys == 7:
        return GameMode.MANIA7
    return GameMode.MANIA0


def match_game_mode(token: Optional[str]) -> Optional[GameMode]:
    """알려진 모드 별칭이면 GameMode, 아니면 None"""
    if not token:
        return None

    value = " ".join(token.strip().strip("[]()").split()).lower()
    if not value:
        return None

    if value in GAME_MODE_ALIASES:
        return GAME_MODE_ALIASES[value]

    if MANIA_KEYWORD_PATTERN.search(value):
        keys = MANIA_KEYS_PATTERN.search(value)
        return _mania_from_keys(int(keys.group(1)) if keys else None)

    keys = KEY_ONLY_PATTERN.match(value)
    if keys and int(keys.group(1)) in VALID_KEY_COUNTS:
        return _mania_from_keys(int(keys.group(1)))

    return None


def normalize_game_mode(token: Optional[str]) -> Optional[GameMode]:
    """게임 모드 정규화: 알 수 없는 토큰은 ETC, 빈 값은 None (호출 측에서 STD 적용)"""
    if token is None or not token.strip():
        return None
    return match_game_mode(token) or GameMode.ETC


# =============================================================================
# 날짜
# =============================================================================

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

MONTH_NAME = (
    r"(?P<month>jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)(?![a-z])"
)
TIME_PART = r"(?:,?\s*(?:@|at)?\s*(?P<hour>\d{1,2}):(?P<minute>\d{2})(?:\s*(?P<ampm>am|pm)\b)?)?"

DATE_PATTERNS = [
    # "Sep. 1st 14:00", "August 30th, 2025 23:59"
    ("month_day", re.compile(
        rf"\b{MONTH_NAME}\.?\s*(?P<day>\d{{1,2}})(?:st|nd|rd|th)?(?![\d:])(?:,?\s+(?P<year>\d{{4}})(?!\d))?{TIME_PART}",
        re.IGNORECASE,
    )),
    # "1. September 2025 14:00", "15th of March"
    ("day_month", re.compile(
        rf"\b(?P<day>\d{{1,2}})(?:st|nd|rd|th)?\.?\s*(?:of\s+)?{MONTH_NAME}\.?(?:,?\s+(?P<year>\d{{4}})(?!\d))?{TIME_PART}",
        re.IGNORECASE,
    )),
    # "2025-09-01 14:00", "2025.09.01"
    ("iso", re.compile(
        rf"\b(?P<year>\d{{4}})(?P<sep>[-./])(?P<month>\d{{1,2}})(?P=sep)(?P<day>\d{{1,2}})(?!\d)(?:[ T]+(?P<hour>\d{{1,2}}):(?P<minute>\d{{2}}))?",
        re.IGNORECASE,
    )),
    # "09/01/2025", "25/12/25"
    ("numeric", re.compile(
        rf"\b(?P<first>\d{{1,2}})/(?P<second>\d{{1,2}})/(?P<year>\d{{4}}|\d{{2}})(?!\d){TIME_PART}",
        re.IGNORECASE,
    )),
    # "2025년 9월 1일 14:00"
    ("korean", re.compile(
        rf"(?:(?P<year>\d{{4}})\s*년\s*)?(?P<month>\d{{1,2}})\s*월\s*(?P<day>\d{{1,2}})\s*일{TIME_PART}",
    )),
]


def _expand_year(year: str) -> int:
    """2자리 연도: 50 미만 → 2000년대, 그 외 → 1900년대"""
    value = int(year)
    if len(year) == 2:
        return 2000 + value if value < 50 else 1900 + value
    return value


def _build_datetime(kind: str, groups: dict, default_year: int) -> Optional[datetime]:
    if kind == "numeric":
        first, second = int(groups["first"]), int(groups["second"])
        # 첫 숫자가 12를 넘으면 D/M/Y, 그 외에는 M/D/Y
        if first > 12:
            day, month = first, second
        else:
            month, day = first, second
    else:
        day = int(groups["day"])
        month_token = groups["month"]
        month = MONTHS[month_token[:3].lower()] if not month_token.isdigit() else int(month_token)

    year = _expand_year(groups["year"]) if groups.get("year") else default_year

    hour = int(groups["hour"]) if groups.get("hour") else 0
    minute = int(groups["minute"]) if groups.get("minute") else 0
    ampm = (groups.get("ampm") or "").lower()
    if ampm == "pm" and hour < 12:
        hour += 12
    elif ampm == "am" and hour == 12:
        hour = 0

    try:
        return datetime(year, month, day, hour, minute)
    except ValueError:
        return None


def parse_date(text: Optional[str], reference: Optional[datetime] = None) -> Optional[datetime]:
    """
    자유 형식 날짜 파싱

    패턴: 월이름-일, 일-월이름, ISO, 숫자(M/D/Y 또는 D/M/Y), 한국어.
    텍스트에서 가장 앞에 시작하는 매칭을 사용하고, 같은 위치면 위 순서가 우선.
    ("14 September 18:00" → 9월 14일 18:00, "September 18"이 아님)
    연도가 없으면 reference(기본: 현재) 연도를 사용한다.
    연도 범위를 벗어나거나 달력상 불가능한 날짜는 None.
    """
    if not text:
        return None

    default_year = (reference or datetime.now()).year
    candidates = []

    for priority, (kind, pattern) in enumerate(DATE_PATTERNS):
        match = pattern.search(text)
        if not match:
            continue

        result = _build_datetime(kind, match.groupdict(), default_year)
        if result is None:
            continue
        if not parser_config.date_year_min <= result.year <= parser_config.date_year_max:
            continue
        candidates.append((match.start(), priority, result))

    if not candidates:
        return None
    return min(candidates)[2]


def snap_to_sunday(value: datetime) -> datetime:
    """해당 주의 일요일로 이동 (이미 일요일이면 그대로)"""
    # weekday(): 월=0 ... 일=6
    return value + timedelta(days=(6 - value.weekday()) % 7)


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """datetime → "YYYY-MM-DD HH:MM:SS" """
    if value is None:
        return None
    return value.strftime("%Y-%m-%d %H:%M:%S")
