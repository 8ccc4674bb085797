"""
rating.py – Rating submission and mentor referral
==================================================
RatingResolver
    • parse_rating(text)      → int 1–5 or None
    • submit_rating(...)      stores the rating on a ratings row and the session
    • record_feedback(...)    stores free-text feedback after a low rating
    • find_mentors(services)  concurrent mentor lookups → MentorCard list

Exactly-once rating per session is not enforced here; the chat flow leaves
the rating branch after the first accepted value.
"""

from __future__ import annotations

import concurrent.futures
import logging
import re
from typing import Optional

from startup_companion import database
from startup_companion.models import (
    CONFIRMED_IDEA_FLOW,
    DOCUMENT_TYPES,
    Mentor,
    MentorCard,
)

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^[+-]?\d+")


def parse_rating(text: str) -> Optional[int]:
    """Leading integer of the trimmed text when it lies in 1–5, else None."""
    match = _LEADING_INT.match(text.strip())
    if not match:
        return None
    value = int(match.group())
    return value if 1 <= value <= 5 else None


def mentor_card(mentor: Mentor, service: str) -> MentorCard:
    return MentorCard(
        name      = mentor.name,
        email     = mentor.email,
        phone     = mentor.phone or "",
        expertise = ", ".join(mentor.specialization),
        service   = service[:1].upper() + service[1:],
    )


class RatingResolver:

    def __init__(self, service_type: str = CONFIRMED_IDEA_FLOW) -> None:
        self.service_type = service_type

    def submit_rating(self, session_id: str, user_id: str, rating: int) -> bool:
        if not 1 <= rating <= 5:
            raise ValueError(f"rating must be between 1 and 5, got {rating}")
        ok = database.save_rating(session_id, user_id, self.service_type, rating)
        if not ok:
            logger.warning("Rating %d for session %s was not stored", rating, session_id)
        return ok

    def record_feedback(self, session_id: str, feedback: str) -> bool:
        return database.save_rating_feedback(session_id, feedback.strip())

    def get_mentor_for_service(self, service: str) -> Optional[Mentor]:
        return database.get_mentor_for_service(service)

    def find_mentors(
        self,
        services: Optional[list[str]] = None,
        session_id: Optional[str] = None,
    ) -> list[MentorCard]:
        """
        Look up one mentor per service concurrently.  Services without a
        mentor, or whose lookup raised, are dropped; the remaining cards keep
        the requested order.
        """
        services = services or [t.value for t in DOCUMENT_TYPES]
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(services)) as executor:
            futures = [executor.submit(self.get_mentor_for_service, s) for s in services]
            mentors = [self._lookup_result(f, s) for f, s in zip(futures, services)]

        cards = [
            mentor_card(mentor, service)
            for service, mentor in zip(services, mentors)
            if mentor is not None
        ]
        if cards and session_id:
            database.set_mentor_assigned(session_id)
        logger.info("Mentor lookup: %d of %d services matched", len(cards), len(services))
        return cards

    @staticmethod
    def _lookup_result(
        future: concurrent.futures.Future,
        service: str,
    ) -> Optional[Mentor]:
        try:
            return future.result()
        except Exception:
            logger.exception("Mentor lookup for %s failed", service)
            return None
