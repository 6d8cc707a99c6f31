"""
Unit tests for the post content parser
Tests: discord, star ratings, registration dates, grand final date, banner, badge, host lookup
"""

from unittest.mock import MagicMock

import pytest
from forum_parser.content_parser import ContentParser


@pytest.fixture
def parser(reference_date):
    return ContentParser(reference_date=reference_date)


class TestSamplePost:
    """Full sample announcement"""

    def test_all_fields(self, parser, sample_body):
        result = parser.parse(sample_body)
        assert result.discord_link == "abcDEF12"
        assert result.star_rating_qualifier == 5.5
        assert result.star_rating_min == 6.0
        assert result.star_rating_max == 7.5
        assert result.registration_open_date == "2025-08-01 00:00:00"
        assert result.registration_close_date == "2025-08-15 00:00:00"
        assert result.end_date == "2025-09-14 00:00:00"
        assert result.banner_url == "https://i.ppy.sh/abcdef1234567890/banner.png"
        assert result.has_badge is False
        assert result.host_name is None


class TestDiscordLink:
    """Test discord invite extraction"""

    def test_returns_code_only(self, parser):
        code, rule = parser.extract_discord_link("Join us: https://discord.gg/abcDEF12 !")
        assert code == "abcDEF12"
        assert rule == "discord_gg"

    def test_invite_path_forms(self, parser):
        assert parser.extract_discord_link("https://discord.com/invite/xyz123")[0] == "xyz123"
        assert parser.extract_discord_link("https://discordapp.com/invite/old-code")[0] == "old-code"

    def test_imagemap_fallback(self, parser):
        body = (
            "[imagemap]\n"
            "https://i.ppy.sh/banner.png\n"
            "0 0 100 100 https://discord.gg/imgCode1 Join\n"
            "[/imagemap]"
        )
        code, rule = parser.extract_discord_link(body)
        assert code == "imgCode1"
        assert rule == "imagemap_discord_gg"

    def test_main_body_preferred_over_imagemap(self, parser):
        body = (
            "[imagemap]\nhttps://i.ppy.sh/banner.png\n0 0 1 1 https://discord.gg/fromMap Join\n[/imagemap]\n"
            "Discord: https://discord.gg/fromBody"
        )
        assert parser.extract_discord_link(body)[0] == "fromBody"

    def test_code_length_bounds(self, parser):
        assert parser.extract_discord_link("https://discord.gg/ab") == (None, None)
        assert parser.extract_discord_link("https://discord.gg/" + "a" * 21) == (None, None)

    def test_absent(self, parser):
        assert parser.extract_discord_link("no invite here") == (None, None)


class TestStarRating:
    """Test star rating bracket extraction"""

    def test_qualifier_split(self, parser):
        body = "Qualifiers will be played first.\n[b]SR=5.8[/b] ... [b]SR=7.2[/b]"
        low, high, qualifier, rule = parser.extract_star_ratings(body)
        assert qualifier == 5.8
        assert low == 7.2
        assert high == 7.2

    def test_stage_ratings_without_qualifier(self, parser):
        body = "[b]Round of 32[/b] (4.5*)\n[b]Finals[/b] (6.5*)"
        low, high, qualifier, _ = parser.extract_star_ratings(body)
        assert (low, high, qualifier) == (4.5, 6.5, None)

    def test_out_of_bounds_values_dropped(self, parser):
        low, high, qualifier, _ = parser.extract_star_ratings("Pool: 25* and 0.2* and 5*")
        assert (low, high, qualifier) == (5.0, 5.0, None)

    def test_fallback_range(self, parser):
        low, high, qualifier, rule = parser.extract_star_ratings("SR: 4.5 - 6.25")
        assert (low, high, qualifier) == (4.5, 6.25, None)
        assert rule == "sr_range"

    def test_fallback_inverted_range(self, parser):
        low, high, _, rule = parser.extract_star_ratings("Difficulty 7★ - 5★")
        assert (low, high) == (5.0, 7.0)
        assert rule == "black_star_range"

    def test_fallback_qualifier_collapse(self, parser):
        body = "Qualifiers SR=5\nMain bracket SR: 5-7"
        low, high, qualifier, _ = parser.extract_star_ratings(body)
        assert qualifier == 5.0
        assert (low, high) == (7.0, 7.0)

    def test_none_found(self, parser):
        assert parser.extract_star_ratings("no ratings here") == (None, None, None, None)


class TestRegistrationDates:
    """Test registration period extraction"""

    def test_close_only(self, parser, reference_date):
        open_date, close_date, rule = parser.extract_registration_dates(
            "Registrations End: August 30th 23:59", reference_date
        )
        assert open_date is None
        assert close_date.strftime("%Y-%m-%d %H:%M:%S") == "2025-08-30 23:59:00"
        assert rule == "registration_end"

    def test_close_only_formatted(self, parser):
        result = parser.parse("[b]Registrations End:[/b] August 30th 23:59")
        assert result.registration_close_date == "2025-08-30 23:59:00"
        assert result.registration_open_date is None

    def test_to_pair(self, parser):
        result = parser.parse("Registration: August 1st to August 14th")
        assert result.registration_open_date == "2025-08-01 00:00:00"
        assert result.registration_close_date == "2025-08-14 00:00:00"

    def test_pipe_pair(self, parser):
        result = parser.parse("Registration | 2025-08-01 - 2025-08-14")
        assert result.registration_open_date == "2025-08-01 00:00:00"
        assert result.registration_close_date == "2025-08-14 00:00:00"

    def test_inverted_pair_is_swapped(self, parser):
        result = parser.parse("Registration: August 20th - August 5th")
        assert result.registration_open_date == "2025-08-05 00:00:00"
        assert result.registration_close_date == "2025-08-20 00:00:00"

    def test_player_registration_label(self, parser):
        result = parser.parse("Player Registrations: Aug 1 - Aug 10")
        assert result.registration_open_date == "2025-08-01 00:00:00"
        assert result.registration_close_date == "2025-08-10 00:00:00"

    def test_per_call_reference_date(self, parser):
        from datetime import datetime
        result = parser.parse("Registrations End: March 3rd", reference_date=datetime(2026, 1, 1))
        assert result.registration_close_date == "2026-03-03 00:00:00"

    def test_day_first_pair_with_times(self, parser):
        result = parser.parse("Registration: 1 August 12:00 - 15 August 23:59")
        assert result.registration_open_date == "2025-08-01 12:00:00"
        assert result.registration_close_date == "2025-08-15 23:59:00"

    def test_absent(self, parser, reference_date):
        assert parser.extract_registration_dates("nothing", reference_date) == (None, None, None)


class TestEndDate:
    """Test grand final date extraction"""

    def test_snapped_to_sunday(self, parser):
        assert parser.parse("Grand Finals: September 13th").end_date == "2025-09-14 00:00:00"

    def test_semifinals_ignored(self, parser):
        body = "Semi Finals: October 4th\nGrand Finals: September 27th"
        assert parser.parse(body).end_date == "2025-09-28 00:00:00"

    def test_latest_date_wins(self, parser):
        body = "GF: September 13th\nGrand Finals (rescheduled): September 20th"
        assert parser.parse(body).end_date == "2025-09-21 00:00:00"

    def test_day_first_with_time(self, parser):
        """Time of day survives and the date is already a Sunday"""
        assert parser.parse("Grand Finals: 14 September 18:00 UTC").end_date == "2025-09-14 18:00:00"

    def test_absent(self, parser):
        assert parser.parse("no schedule yet").end_date is None


class TestBannerUrl:
    """Test banner image extraction"""

    def test_bbcode_img(self, parser):
        url, rule = parser.extract_banner_url("[img]https://i.ppy.sh/banner.png[/img]")
        assert url == "https://i.ppy.sh/banner.png"
        assert rule == "bbcode_img"

    def test_imagemap(self, parser):
        body = "[imagemap]\nhttps://i.ppy.sh/map.jpg\n0 0 1 1 https://example.com Link\n[/imagemap]"
        assert parser.extract_banner_url(body) == ("https://i.ppy.sh/map.jpg", "imagemap")

    def test_html_img(self, parser):
        url, rule = parser.extract_banner_url('<img src="https://example.com/banner.jpg" alt="banner">')
        assert url == "https://example.com/banner.jpg"
        assert rule == "html_img"

    def test_markdown_img(self, parser):
        url, rule = parser.extract_banner_url("![banner](https://example.com/b.webp)")
        assert url == "https://example.com/b.webp"
        assert rule == "markdown_img"

    def test_bare_image_url(self, parser):
        url, rule = parser.extract_banner_url("Banner: https://example.com/b.gif")
        assert url == "https://example.com/b.gif"
        assert rule == "bare_image_url"

    def test_non_image_rejected(self, parser):
        assert parser.extract_banner_url("[img]https://example.com/page[/img]") == (None, None)

    def test_too_long_rejected(self, parser):
        url = "https://example.com/" + "a" * 500 + ".png"
        assert parser.extract_banner_url(f"[img]{url}[/img]") == (None, None)


class TestBadge:
    """Test badge status detection"""

    def test_badged(self, parser):
        assert parser.extract_badge_status("This tournament is badged!") is True

    def test_unbadged_overrides(self, parser):
        assert parser.extract_badge_status("Badge? No, this is unbadged.") is False

    def test_report_url(self, parser):
        assert parser.extract_badge_status("Report: https://tcomm.hivie.tn/reports/create?id=1") is True

    def test_korean(self, parser):
        assert parser.extract_badge_status("우승자 배지 지급") is True

    def test_default_false(self, parser):
        assert parser.extract_badge_status("Prize: eternal glory") is False


class TestHostLookup:
    """Test host lookup boundary"""

    def test_lookup_by_author(self, reference_date, fake_lookup):
        parser = ContentParser(host_lookup=fake_lookup, reference_date=reference_date)
        result = parser.parse("body", author_id=1234)
        assert result.host_name == "TestHost"
        assert result.matches["host_name"].rule == "author_lookup"

    def test_no_author_id_skips_lookup(self, reference_date):
        lookup = MagicMock(return_value="Someone")
        parser = ContentParser(host_lookup=lookup, reference_date=reference_date)
        assert parser.parse("body").host_name is None
        lookup.assert_not_called()

    def test_lookup_failure_degrades_to_none(self, reference_date):
        lookup = MagicMock(side_effect=RuntimeError("api down"))
        parser = ContentParser(host_lookup=lookup, reference_date=reference_date)
        assert parser.parse("body", author_id=1).host_name is None
        lookup.assert_called_once_with(1)

    def test_not_found(self, reference_date, fake_lookup):
        parser = ContentParser(host_lookup=fake_lookup, reference_date=reference_date)
        assert parser.parse("body", author_id=999).host_name is None
