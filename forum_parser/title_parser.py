"""
토픽 제목 파서

한 줄짜리 포럼 토픽 제목에서 팀 형식, 랭크 범위, BWS, 게임 모드, 정리된 대회명을 추출한다.
필드별 규칙은 (이름, 패턴) 순서 목록으로 관리하고 먼저 매칭된 규칙이 채택된다.
"""
import re
from typing import List, Optional, Tuple

from loguru import logger

from .config import parser_config, ParserConfig
from .models import FieldMatch, GameMode, TitleMetadata
from .normalizer import convert_rank_to_number, match_game_mode


# =============================================================================
# 공통 토큰
# =============================================================================

COMMA_NUM = r"\d{1,3}(?:,\d{3})+"
DECIMAL_K = r"\d+\.\d+\s*k"
INT_K = r"\d+\s*k"
PLAIN_NUM = r"\d+"
ANY_NUM = rf"(?:{COMMA_NUM}|{DECIMAL_K}|{INT_K}|{PLAIN_NUM})"
BEFORE = r"(?<![\w.,/:#-])"
AFTER = r"(?![\w.,/:]|\s*[-~]\s*\d)"

YEAR_PATTERN = re.compile(r"^(?:19|20)\d{2}$")
RANK_MARKER_PATTERN = re.compile(r"[k,#+∞]|inf", re.IGNORECASE)


# =============================================================================
# 게임 모드
# =============================================================================

BRACKET_TOKEN_PATTERN = re.compile(r"[\[(]([^\[\]()]*)[\])]")
LEADING_BRACKETS_PATTERN = re.compile(r"^\s*((?:[\[(][^\[\]()]*[\])]\s*)+)")
OSU_MODE_PATTERN = re.compile(
    r"(?:\b\d{1,2}\s*k\s+)?\bosu!\s*(?:std|standard|taiko|catch|ctb|mania(?:\s*\d{1,2}\s*k)?)\b",
    re.IGNORECASE,
)


def _mode_from_leading_brackets(title: str) -> Optional[Tuple[GameMode, str]]:
    leading = LEADING_BRACKETS_PATTERN.match(title)
    if not leading:
        return None
    for token in BRACKET_TOKEN_PATTERN.findall(leading.group(1)):
        mode = match_game_mode(token)
        if mode:
            return mode, token
    return None


def _mode_from_osu_prefix(title: str) -> Optional[Tuple[GameMode, str]]:
    match = OSU_MODE_PATTERN.search(title)
    if not match:
        return None
    mode = match_game_mode(match.group(0))
    return (mode, match.group(0)) if mode else None


def _mode_from_any_bracket(title: str) -> Optional[Tuple[GameMode, str]]:
    for token in BRACKET_TOKEN_PATTERN.findall(title):
        mode = match_game_mode(token)
        if mode:
            return mode, token
    return None


GAME_MODE_RULES = [
    ("leading_bracket", _mode_from_leading_brackets),
    ("osu_prefixed", _mode_from_osu_prefix),
    ("any_bracket", _mode_from_any_bracket),
]


# =============================================================================
# 팀 형식
# =============================================================================

TEAM_VS_RULES = [
    ("nvn", re.compile(r"(?<![\w.])(\d{1,2})\s*v(?:s\.?)?\s*(\d{1,2})(?!\w)", re.IGNORECASE)),
    ("korean_nvn", re.compile(r"(?<!\d)(\d{1,2})\s*대\s*(\d{1,2})(?!\d)")),
]

TEAM_SIZE_RULES = [
    ("ts", re.compile(r"\bTS\s*[:=]?\s*(\d{1,2})(?:\s*[-~]\s*(\d{1,2}))?(?!\d)", re.IGNORECASE)),
    ("team_size", re.compile(r"\bteam\s*size\s*[:=]?\s*(\d{1,2})(?:\s*[-~]\s*(\d{1,2}))?(?!\d)", re.IGNORECASE)),
    ("korean_team_size", re.compile(r"팀\s*인원\s*[:=]?\s*(\d{1,2})(?:\s*[-~]\s*(\d{1,2}))?")),
]


# =============================================================================
# 랭크 범위
# =============================================================================

OPEN_RANK_PATTERNS = [
    re.compile(r"\b(?:international\s+)?open[\s-]*rank(?:ed)?\b", re.IGNORECASE),
    re.compile(r"랭크\s*제한\s*없음|제한\s*없음|무제한"),
]

RANK_RULES = [
    ("comma_range", re.compile(
        rf"{BEFORE}#?\s*{COMMA_NUM}\s*[-~]\s*#?\s*{COMMA_NUM}{AFTER}", re.IGNORECASE)),
    ("single_comma_range", re.compile(
        rf"{BEFORE}#?\s*(?:{COMMA_NUM}\s*[-~]\s*#?\s*(?:{DECIMAL_K}|{INT_K}|{PLAIN_NUM})"
        rf"|(?:{DECIMAL_K}|{INT_K}|{PLAIN_NUM})\s*[-~]\s*#?\s*{COMMA_NUM}){AFTER}", re.IGNORECASE)),
    ("decimal_k_range", re.compile(
        rf"{BEFORE}#?\s*(?:{DECIMAL_K}\s*[-~]\s*#?\s*(?:{DECIMAL_K}|{INT_K})"
        rf"|{INT_K}\s*[-~]\s*#?\s*{DECIMAL_K}){AFTER}", re.IGNORECASE)),
    ("plain_range", re.compile(
        rf"{BEFORE}(?:{INT_K}|{PLAIN_NUM})\s*[-~]\s*(?:{INT_K}|{PLAIN_NUM}){AFTER}", re.IGNORECASE)),
    ("hash_range", re.compile(
        rf"#\s*(?:{INT_K}|{PLAIN_NUM})\s*[-~]\s*#?\s*(?:{INT_K}|{PLAIN_NUM}){AFTER}", re.IGNORECASE)),
    ("open_ended_infinity", re.compile(
        rf"{BEFORE}#?\s*{ANY_NUM}\s*[-~]\s*(?:infinity|inf|∞)", re.IGNORECASE)),
    ("open_ended_plus", re.compile(rf"{BEFORE}#?\s*{ANY_NUM}\s*\+", re.IGNORECASE)),
    ("open_ended_tilde", re.compile(rf"{BEFORE}#?\s*{ANY_NUM}\s*~\s*$", re.IGNORECASE)),
]

OPEN_ENDED_SUFFIX_PATTERN = re.compile(r"\s*(?:[-~]\s*(?:infinity|inf|∞)|\+|~)\s*$", re.IGNORECASE)
RANGE_SPLIT_PATTERN = re.compile(r"\s*[-~]\s*")


def parse_rank_pair(raw: str) -> Tuple[Optional[int], Optional[int]]:
    """랭크 범위 문자열 → (min, max). 역순이면 교환, 열린 범위는 한쪽 None"""
    text = raw.strip()

    if OPEN_ENDED_SUFFIX_PATTERN.search(text):
        lower = OPEN_ENDED_SUFFIX_PATTERN.sub("", text)
        return convert_rank_to_number(lower), None

    parts = RANGE_SPLIT_PATTERN.split(text, maxsplit=1)
    if len(parts) != 2:
        return convert_rank_to_number(text), None

    low = convert_rank_to_number(parts[0])
    high = convert_rank_to_number(parts[1])
    if low is not None and high is not None and low > high:
        low, high = high, low
    return low, high


def looks_like_rank(raw: str) -> bool:
    """연도 범위(2024-2025 등)가 아닌 랭크 표기인지"""
    if RANK_MARKER_PATTERN.search(raw):
        return True
    numbers = re.findall(r"\d+", raw)
    return not (numbers and all(YEAR_PATTERN.match(n) for n in numbers))


def _accept_rank_candidate(rule: str, raw: str, low: Optional[int], high: Optional[int]) -> bool:
    if low is None and high is None:
        return False
    if not looks_like_rank(raw):
        return False
    if rule in ("plain_range", "open_ended_plus", "open_ended_tilde") and not RANK_MARKER_PATTERN.search(raw):
        # "TS 2-4", "16+" 같은 작은 숫자 배제
        if max(v for v in (low, high) if v is not None) < 100:
            return False
    return True


# =============================================================================
# BWS
# =============================================================================

NO_BWS_PATTERN = re.compile(r"\bno[\s_-]*bws\b|\bnon[\s_-]*bws\b", re.IGNORECASE)
BWS_PATTERN = re.compile(r"\bbws\b", re.IGNORECASE)


# =============================================================================
# 제목 정리
# =============================================================================

HTML_TAG_PATTERN = re.compile(r"<[^>]+>")
BRACKET_GROUP_PATTERN = re.compile(r"\[[^\]]*\]|\([^)]*\)")
LEADING_BRACKET_PATTERN = re.compile(r"^\s*[\[(]([^\[\]()]*)[\])]\s*")
LEADING_STATUS_PATTERN = re.compile(
    r"^\s*[\[(]\s*(?:open|closed|full"
    r"|(?:registrations?|regs?|sign[\s-]?ups?)\s*(?:are\s*)?(?:open(?:ed)?|closed|ended)"
    r"|모집\s*중|모집\s*마감|신청\s*중|마감)\s*[\])]\s*",
    re.IGNORECASE,
)
LEADING_RANK_PATTERN = re.compile(
    rf"^\s*(?:rank\s*:?\s*)?(#?\s*{ANY_NUM}\s*(?:[-~]\s*#?\s*(?:{ANY_NUM}|infinity|inf|∞)|\+)?)"
    rf"(?![\w.,])\s*(?:rank(?:ed)?\b)?\s*[-|:]?\s*",
    re.IGNORECASE,
)
TRAILING_TEAM_FORMAT_PATTERN = re.compile(
    r"\s*[-|:,]?\s*\d{1,2}\s*v(?:s\.?)?\s*\d{1,2}\s*$", re.IGNORECASE
)
TRAILING_BANG_PATTERN = re.compile(r"\s*!+\s*$")
CHINESE_COLON_PATTERN = re.compile(r"\s*：.*$")
TRAILING_SUBTITLE_PATTERN = re.compile(r"\s*:\s.*$")
TRAILING_SUFFIX_PATTERN = re.compile(
    rf"\s*[-–—~,]?\s*(?<!\w)(?:\d{{1,2}}\s*v(?:s\.?)?\s*\d{{1,2}}"
    rf"|TS\s*\d{{1,2}}(?:\s*[-~]\s*\d{{1,2}})?"
    rf"|team\s*size\s*\d{{1,2}}(?:\s*[-~]\s*\d{{1,2}})?"
    rf"|(?:no\s*)?bws"
    rf"|(?:international\s+)?open\s*rank"
    rf"|#?\s*{ANY_NUM}\s*(?:[-~]\s*#?\s*(?:{ANY_NUM}|infinity|inf|∞)|\+))\s*$",
    re.IGNORECASE,
)
EDGE_SEPARATORS = " -–—|:~,"


def _strip_leading_mode(text: str) -> str:
    match = LEADING_BRACKET_PATTERN.match(text)
    if match and match_game_mode(match.group(1)):
        return text[match.end():]
    return text


def _strip_leading_rank(text: str) -> str:
    match = LEADING_RANK_PATTERN.match(text)
    if not match:
        return text
    raw = match.group(1)
    # 범위/접미사 없는 단독 숫자("2025 Cup")는 그대로 둔다
    if not re.search(r"[-~+k,#]", raw, re.IGNORECASE) or not looks_like_rank(raw):
        return text
    return text[match.end():]


def _strip_trailing_suffixes(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        match = TRAILING_SUFFIX_PATTERN.search(text)
        if match and looks_like_rank(match.group(0)):
            text = text[:match.start()]
        text = text.rstrip(EDGE_SEPARATORS)
    return text


class TitleParser:
    """포럼 토픽 제목 메타데이터 파서"""

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or parser_config

    def parse(self, title: str) -> TitleMetadata:
        """제목 → TitleMetadata (기본값 적용 포함)"""
        result = TitleMetadata()
        if not title or not title.strip():
            return result

        title = " ".join(title.split())

        # 1. 게임 모드
        game_mode = None
        for rule, finder in GAME_MODE_RULES:
            found = finder(title)
            if found:
                game_mode, raw = found
                result.matches["game_mode"] = FieldMatch(rule=rule, raw=raw)
                logger.debug(f"게임 모드 규칙 '{rule}': {raw} → {game_mode.value}")
                break

        # 2. 팀 형식
        result.team_vs, vs_match = self.extract_team_vs(title)
        if vs_match:
            result.matches["team_vs"] = vs_match
        result.team_size, size_match = self.extract_team_size(title)
        if size_match:
            result.matches["team_size"] = size_match

        # 3. 랭크 범위
        rank_min, rank_max, rank_match = self.extract_rank_range(title)
        result.rank_range_min, result.rank_range_max = rank_min, rank_max
        if rank_match:
            result.matches["rank_range"] = rank_match

        # 4. BWS
        result.is_bws = self.detect_bws(title)

        # 5. 기본값
        result.game_mode = game_mode or GameMode.STD
        if result.team_vs is None and result.team_size is None:
            result.team_vs = 1
            result.team_size = 1
        elif result.team_vs == 1 and result.team_size is None:
            result.team_size = 1

        # 6. 제목 정리
        result.title = self.clean_title(title)
        if result.title:
            result.matches["title"] = FieldMatch(rule="topic_title", raw=title)

        return result

    @staticmethod
    def extract_team_vs(title: str) -> Tuple[Optional[int], Optional[FieldMatch]]:
        """NvN 형식의 N"""
        for rule, pattern in TEAM_VS_RULES:
            for match in pattern.finditer(title):
                left, right = int(match.group(1)), int(match.group(2))
                if left == right and left > 0:
                    return left, FieldMatch(rule=rule, raw=match.group(0))
        return None, None

    @staticmethod
    def extract_team_size(title: str) -> Tuple[Optional[int], Optional[FieldMatch]]:
        """팀 인원 (범위 표기는 큰 값)"""
        for rule, pattern in TEAM_SIZE_RULES:
            match = pattern.search(title)
            if not match:
                continue
            sizes = [int(g) for g in match.groups() if g]
            size = max(sizes)
            if size > 0:
                return size, FieldMatch(rule=rule, raw=match.group(0))
        return None, None

    @staticmethod
    def extract_rank_range(title: str) -> Tuple[Optional[int], Optional[int], Optional[FieldMatch]]:
        """랭크 범위 (min, max, 매칭 정보). 오픈 랭크는 양쪽 None"""
        for pattern in OPEN_RANK_PATTERNS:
            match = pattern.search(title)
            if match:
                logger.debug(f"오픈 랭크: {match.group(0)}")
                return None, None, FieldMatch(rule="open_rank", raw=match.group(0))

        for rule, pattern in RANK_RULES:
            for match in pattern.finditer(title):
                raw = match.group(0).strip()
                low, high = parse_rank_pair(raw)
                if _accept_rank_candidate(rule, raw, low, high):
                    logger.debug(f"랭크 규칙 '{rule}': {raw} → {low}-{high}")
                    return low, high, FieldMatch(rule=rule, raw=raw)

        return None, None, None

    @staticmethod
    def detect_bws(title: str) -> bool:
        """BWS 여부 ("no bws"가 있으면 항상 False)"""
        if NO_BWS_PATTERN.search(title):
            return False
        return bool(BWS_PATTERN.search(title))

    def clean_title(self, title: str) -> Optional[str]:
        """표시용 대회명 정리 (너무 짧으면 None)"""
        text = HTML_TAG_PATTERN.sub("", title)

        # 앞쪽 모드/상태/랭크 토큰
        previous = None
        while previous != text:
            previous = text
            text = _strip_leading_mode(text)
            text = LEADING_STATUS_PATTERN.sub("", text)
            text = _strip_leading_rank(text)

        text = BRACKET_GROUP_PATTERN.sub(" ", text)
        text = TRAILING_TEAM_FORMAT_PATTERN.sub("", text)

        text = text.split("|", 1)[0]
        text = TRAILING_BANG_PATTERN.sub("", text)
        text = CHINESE_COLON_PATTERN.sub("", text)
        text = TRAILING_SUBTITLE_PATTERN.sub("", text)
        text = _strip_trailing_suffixes(text)

        text = " ".join(text.split()).strip(EDGE_SEPARATORS)

        if len(text) < self.config.title_min_length:
            return None
        return text
