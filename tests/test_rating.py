"""
Tests for rating parsing, storage and mentor referral (rating.py).
"""
import pytest

from startup_companion import database
from startup_companion.models import Mentor
from startup_companion.rating import RatingResolver, mentor_card, parse_rating


class TestParseRating:
    @pytest.mark.parametrize("text, expected", [
        ("1", 1),
        ("5", 5),
        (" 4 ", 4),
        ("3 stars", 3),
        ("2.5", 2),
        ("0", None),
        ("6", None),
        ("7", None),
        ("-1", None),
        ("five", None),
        ("", None),
    ])
    def test_parse(self, text, expected):
        assert parse_rating(text) == expected


class TestMentorCard:
    def test_card_fields(self):
        mentor = Mentor(
            id="m1", name="Kavita Rao", email="k@x.in", phone=None,
            specialization=["Corporate Law", "Tax Compliance"], service_types=["compliance"],
        )
        card = mentor_card(mentor, "compliance")
        assert card.expertise == "Corporate Law, Tax Compliance"
        assert card.service == "Compliance"
        assert card.phone == ""


class TestRatingResolver:
    def test_submit_rating_stores(self, session_id, user):
        assert RatingResolver().submit_rating(session_id, user.id, 5)
        assert database.get_session(session_id).rating == 5

    @pytest.mark.parametrize("bad", [0, 6, -3])
    def test_submit_rating_rejects_out_of_range(self, session_id, user, bad):
        with pytest.raises(ValueError):
            RatingResolver().submit_rating(session_id, user.id, bad)

    def test_feedback_stored_trimmed(self, session_id, user):
        resolver = RatingResolver()
        resolver.submit_rating(session_id, user.id, 2)
        resolver.record_feedback(session_id, "  slow responses  ")
        assert database.get_session(session_id).rating_feedback == "slow responses"

    def test_find_mentors_all_services(self, seeded_mentors, session_id):
        cards = RatingResolver().find_mentors(session_id=session_id)
        assert [c.service for c in cards] == ["Registration", "Branding", "Compliance", "Hr"]
        assert database.get_session(session_id).mentor_assigned

    def test_services_without_mentor_are_dropped(self, seeded_mentors):
        cards = RatingResolver().find_mentors(["registration", "astrology", "hr"])
        assert [c.service for c in cards] == ["Registration", "Hr"]
        assert cards[1].name == "Vikram Singh"

    def test_no_mentors_returns_empty(self, session_id):
        assert RatingResolver().find_mentors(session_id=session_id) == []
        assert not database.get_session(session_id).mentor_assigned

    def test_failing_lookup_drops_only_that_service(self, seeded_mentors, session_id):
        cards = _BrandingLookupFails().find_mentors(session_id=session_id)
        assert [c.service for c in cards] == ["Registration", "Compliance", "Hr"]
        assert database.get_session(session_id).mentor_assigned

    def test_all_lookups_failing_returns_empty(self, seeded_mentors):
        class _AllFail(RatingResolver):
            def get_mentor_for_service(self, service):
                raise RuntimeError("directory offline")

        assert _AllFail().find_mentors() == []


class _BrandingLookupFails(RatingResolver):
    def get_mentor_for_service(self, service):
        if service == "branding":
            raise ValueError("bad mentor row")
        return super().get_mentor_for_service(service)
