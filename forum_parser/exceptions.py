"""
파서 예외 정의
"""


class ParserError(Exception):
    """파서 기본 예외"""


class InputTooLarge(ParserError, ValueError):
    """본문 또는 제목이 최대 길이를 초과"""

    def __init__(self, field: str, length: int, limit: int):
        self.field = field
        self.length = length
        self.limit = limit
        super().__init__(
            f"Input {field} exceeds maximum allowed length ({length} > {limit})"
        )


class HostLookupError(Exception):
    """호스트 조회 실패"""


class AuthenticationError(HostLookupError):
    """OAuth 토큰 발급/인증 실패"""


class RateLimitError(HostLookupError):
    """API 레이트 리밋 초과"""


class LookupNetworkError(HostLookupError):
    """네트워크 오류"""
