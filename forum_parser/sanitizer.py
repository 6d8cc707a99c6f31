"""
입력 검증 및 정제
- 길이 제한 (초과 시 InputTooLarge)
- <script> 블록, javascript:, 인라인 이벤트 핸들러 제거
- UTF-8 강제 정규화 (예외 없음)
"""
import re
from typing import Optional, Union

from loguru import logger

from .config import parser_config
from .exceptions import InputTooLarge

SCRIPT_BLOCK_PATTERN = re.compile(r"<script[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
SCRIPT_TAG_PATTERN = re.compile(r"</?script[^>]*>", re.IGNORECASE)
JAVASCRIPT_PATTERN = re.compile(r"javascript\s*:", re.IGNORECASE)
EVENT_HANDLER_PATTERN = re.compile(r"\bon[a-z]+\s*=", re.IGNORECASE)


def check_length(value: Union[str, bytes, None], field: str, limit: Optional[int] = None) -> None:
    """최대 길이 검사"""
    limit = limit if limit is not None else parser_config.max_input_length
    if value is not None and len(value) > limit:
        logger.warning(f"입력 길이 초과로 파싱 거부: {field} ({len(value)} > {limit})")
        raise InputTooLarge(field, len(value), limit)


def force_utf8(value: Union[str, bytes, None]) -> str:
    """잘못된 UTF-8 시퀀스/서로게이트를 대체 문자로 치환"""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value.encode("utf-8", errors="replace").decode("utf-8")


def strip_dangerous(text: str) -> str:
    """스크립트/이벤트 핸들러 제거 (중첩 우회 방지를 위해 변화가 없을 때까지 반복)"""
    previous = None
    while previous != text:
        previous = text
        text = SCRIPT_BLOCK_PATTERN.sub("", text)
        text = SCRIPT_TAG_PATTERN.sub("", text)
        text = JAVASCRIPT_PATTERN.sub("", text)
        text = EVENT_HANDLER_PATTERN.sub("", text)
    return text


def sanitize_input(value: Union[str, bytes, None], field: str = "input", limit: Optional[int] = None) -> str:
    """길이 검사 후 정제된 문자열 반환"""
    check_length(value, field, limit)
    return strip_dangerous(force_utf8(value)).strip()
