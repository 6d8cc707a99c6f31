"""
포럼 대회 공지 파서 메인

게시글 하나(제목 + 본문)를 파싱해서 메타데이터와 URL ID를 JSON으로 출력한다.
"""
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional
from loguru import logger

from forum_parser.exceptions import InputTooLarge
from forum_parser.host_lookup import CachedUserLookup, OsuUserLookup
from forum_parser.models import ForumTopic
from forum_parser.service import ForumPostParser


def setup_logging(verbose: bool = False, log_file: bool = False):
    """로깅 설정"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if verbose else "INFO"
    )
    if log_file:
        logger.add(
            "logs/parser_{time:YYYY-MM-DD}.log",
            rotation="1 day",
            retention="30 days",
            level="DEBUG"
        )


def read_body(body_file: Optional[str]) -> str:
    """본문 읽기 (파일 또는 stdin)"""
    if body_file and body_file != "-":
        return Path(body_file).read_text(encoding="utf-8", errors="replace")
    return sys.stdin.read()


def main(argv=None) -> int:
    """메인 함수"""
    import argparse

    parser = argparse.ArgumentParser(description="osu! 포럼 대회 공지 파서")
    parser.add_argument("--title", default="", help="토픽 제목")
    parser.add_argument(
        "--body-file",
        default="-",
        help="본문 파일 경로 (기본: stdin)"
    )
    parser.add_argument("--topic-id", type=int, default=0, help="토픽 ID")
    parser.add_argument("--author-id", type=int, default=None, help="작성자 osu! 유저 ID")
    parser.add_argument(
        "--lookup",
        action="store_true",
        help="osu! API로 호스트 이름 조회 (OSU_CLIENT_ID / OSU_CLIENT_SECRET 필요)"
    )
    parser.add_argument(
        "--reference-date",
        default=None,
        help="연도 없는 날짜의 기준일 (YYYY-MM-DD)"
    )
    parser.add_argument("--verbose", action="store_true", help="디버그 로그 출력")
    parser.add_argument("--log-file", action="store_true", help="logs/ 에 파일 로그 저장")

    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    reference_date = datetime.strptime(args.reference_date, "%Y-%m-%d") if args.reference_date else None
    topic = ForumTopic(
        topic_id=args.topic_id,
        title=args.title,
        body=read_body(args.body_file),
        author_id=args.author_id,
    )

    lookup = OsuUserLookup() if args.lookup else None
    try:
        post_parser = ForumPostParser(
            host_lookup=CachedUserLookup(lookup) if lookup else None,
            reference_date=reference_date,
        )
        result = post_parser.parse_topic(topic)
    except InputTooLarge as e:
        logger.error(f"입력 거부: {e}")
        return 1
    finally:
        if lookup:
            lookup.close()

    print(json.dumps(
        {
            "topic_id": result.topic_id,
            "metadata": result.metadata.to_record(),
            "url_ids": result.url_ids,
        },
        ensure_ascii=False,
        indent=2
    ))
    return 0


if __name__ == "__main__":
    sys.exit(main())
