"""
포럼 게시글 파싱 오케스트레이터

길이 검사 → 정제 → 제목 파서 / 본문 파서 → 병합 → 신뢰도 계산.
URL ID 추출 결과는 메타데이터에 병합하지 않고 parse_topic 결과에 나란히 붙는다.
"""
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from .config import parser_config, ParserConfig
from .confidence import ConfidenceScorer
from .content_parser import ContentParser
from .models import ForumTopic, ParsedTopic, ParsedTournamentMetadata, TitleMetadata
from .sanitizer import check_length, sanitize_input
from .title_parser import TitleParser
from .url_extractor import UrlExtractor


class ForumPostParser:
    """
    토픽 제목 + 본문 → ParsedTournamentMetadata

    Args:
        config: 파서 설정 (기본: 전역 parser_config)
        host_lookup: 작성자 ID → 유저 이름 조회 함수
        url_extractor: URL ID 추출기
        reference_date: 연도 없는 날짜의 기준일 (기본: 파싱 시점)
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        host_lookup: Optional[Callable[[int], Optional[str]]] = None,
        url_extractor: Optional[UrlExtractor] = None,
        reference_date: Optional[datetime] = None,
    ):
        self.config = config or parser_config
        self.title_parser = TitleParser(self.config)
        self.content_parser = ContentParser(self.config, host_lookup=host_lookup, reference_date=reference_date)
        self.url_extractor = url_extractor or UrlExtractor(self.config)
        self.scorer = ConfidenceScorer()

    def parse_forum_post(
        self, body: str, title: str = "", author_id: Optional[int] = None
    ) -> ParsedTournamentMetadata:
        """게시글 하나 파싱. 길이 초과 시 InputTooLarge, 그 외에는 예외 없음"""
        # 1. 길이 검사 (정제 전에 둘 다 검사)
        check_length(body, "body", self.config.max_input_length)
        check_length(title, "title", self.config.max_input_length)

        # 2. 정제
        body = sanitize_input(body, "body", self.config.max_input_length)
        title = sanitize_input(title, "title", self.config.max_input_length)

        # 3. 제목
        title_data = self.title_parser.parse(title) if title else TitleMetadata()

        # 4. 본문
        content_data = self.content_parser.parse(body, author_id=author_id)

        # 5. 병합
        fields = dict(
            title=title_data.title,
            host_name=content_data.host_name,
            team_vs=title_data.team_vs,
            team_size=title_data.team_size,
            rank_range_min=title_data.rank_range_min,
            rank_range_max=title_data.rank_range_max,
            is_bws=title_data.is_bws,
            game_mode=title_data.game_mode,
            discord_link=content_data.discord_link,
            star_rating_min=content_data.star_rating_min,
            star_rating_max=content_data.star_rating_max,
            star_rating_qualifier=content_data.star_rating_qualifier,
            registration_open_date=content_data.registration_open_date,
            registration_close_date=content_data.registration_close_date,
            end_date=content_data.end_date,
            banner_url=content_data.banner_url,
            has_badge=content_data.has_badge,
        )

        # 6. 신뢰도 (랭크 괄호 표기는 제목에 있으므로 제목도 문맥에 포함)
        matches = {**content_data.matches, **title_data.matches}
        context = f"{title}\n{body}" if title else body
        confidence = self.scorer.score_all(fields, context, matches)

        metadata = ParsedTournamentMetadata(**fields, extraction_confidence=confidence)

        extracted = sum(1 for value in fields.values() if value not in (None, False))
        logger.info(f"게시글 파싱 완료: {metadata.title or '(제목 없음)'} - {extracted}개 필드 추출")
        return metadata

    def parse_topic(self, topic: ForumTopic) -> ParsedTopic:
        """토픽 → 메타데이터 + URL ID"""
        metadata = self.parse_forum_post(topic.body, topic.title, topic.author_id)
        body = sanitize_input(topic.body, "body", self.config.max_input_length)
        url_ids = self.url_extractor.extract_all_url_ids(body)
        return ParsedTopic(topic_id=topic.topic_id, metadata=metadata, url_ids=url_ids)


def parse_forum_post(
    body: str,
    title: str = "",
    author_id: Optional[int] = None,
    host_lookup: Optional[Callable[[int], Optional[str]]] = None,
) -> ParsedTournamentMetadata:
    """기본 설정으로 게시글 하나 파싱"""
    return ForumPostParser(host_lookup=host_lookup).parse_forum_post(body, title, author_id)
