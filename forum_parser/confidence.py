"""
추출 신뢰도 계산

필드별로 어떤 규칙이 매칭됐는지(FieldMatch)와 본문 문맥을 보고
high / medium / low / failed 를 부여한다.
세분화된 계산은 title, host_name, rank_range 세 필드에만 적용하고 나머지는 medium.
"""
import re
from typing import Any, Dict, Mapping, Optional

from .models import ConfidenceLevel, FieldMatch

# 신뢰도 맵에서 제외하는 출력 필드
EXCLUDED_FIELDS = {"extraction_confidence"}

RANK_FIELDS = ("rank_range_min", "rank_range_max")


class ConfidenceScorer:
    """필드별 추출 신뢰도 계산기"""

    def score_all(
        self,
        fields: Mapping[str, Any],
        content: str = "",
        matches: Optional[Mapping[str, FieldMatch]] = None,
    ) -> Dict[str, ConfidenceLevel]:
        """값이 있는 모든 필드의 신뢰도"""
        matches = matches or {}
        scores: Dict[str, ConfidenceLevel] = {}

        for field, value in fields.items():
            if field in EXCLUDED_FIELDS or value is None:
                continue
            scores[field] = self.score_field(field, value, content, matches)

        return scores

    def score_field(
        self,
        field: str,
        value: Any,
        content: str = "",
        matches: Optional[Mapping[str, FieldMatch]] = None,
    ) -> ConfidenceLevel:
        """단일 필드 신뢰도 (값이 없으면 항상 failed)"""
        if value is None:
            return ConfidenceLevel.FAILED

        matches = matches or {}

        if field == "title":
            return self.score_title(str(value), content)
        if field == "host_name":
            return self.score_host(str(value), content)
        if field in RANK_FIELDS:
            rank_match = matches.get("rank_range")
            raw = rank_match.raw if rank_match and rank_match.raw else str(value)
            return self.score_rank(raw, content)

        return ConfidenceLevel.MEDIUM

    @staticmethod
    def score_title(title: str, content: str) -> ConfidenceLevel:
        escaped = re.escape(title)
        header_patterns = [
            rf"^\s*#+\s*{escaped}\s*$",
            rf"^\s*\*\*{escaped}\*\*\s*$",
            rf"^\s*\[b\]{escaped}\[/b\]\s*$",
        ]
        for pattern in header_patterns:
            if re.search(pattern, content, re.IGNORECASE | re.MULTILINE):
                return ConfidenceLevel.HIGH

        if re.search(rf"Tournament.*?:\s*{escaped}", content, re.IGNORECASE):
            return ConfidenceLevel.MEDIUM

        return ConfidenceLevel.LOW

    @staticmethod
    def score_host(host_name: str, content: str) -> ConfidenceLevel:
        escaped = re.escape(host_name)
        if re.search(rf"(?:Host|호스트).*?:\s*{escaped}", content, re.IGNORECASE):
            return ConfidenceLevel.HIGH
        if re.search(rf"(?:Staff|진행).*?:\s*{escaped}", content, re.IGNORECASE):
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    @staticmethod
    def score_rank(raw: str, content: str) -> ConfidenceLevel:
        escaped = re.escape(raw)
        if re.search(rf"(?:Rank|BWS).*?:\s*{escaped}", content, re.IGNORECASE):
            return ConfidenceLevel.HIGH
        if re.search(rf"\[{escaped}\]", content, re.IGNORECASE):
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW
