"""
Factory helpers for building test objects.
Imported by conftest.py fixtures AND directly by test modules.
"""
import sys
import os

# Ensure both src/ and tests/ are importable in all test files
_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Force mock mode (safe to call multiple times)
os.environ["FORCE_MOCK_MODE"] = "true"

from startup_companion.models import (
    QUESTIONS,
    DocumentType,
    UserIdentity,
)


ANSWERS: dict[str, str] = {
    "business_name":       "Chai Point Labs",
    "company_description": "A cloud kitchen brand serving regional Indian tea and snacks",
    "location":            "Bengaluru, Karnataka",
    "partners_info":       "Two directors: a CEO handling operations and a CTO running technology",
    "color_preference":    "Earthy",
    "style_preference":    "Modern/Contemporary",
}


def make_user(user_id: str = "user-123", name: str = "Priya Sharma") -> UserIdentity:
    return UserIdentity(id=user_id, name=name, email="priya@example.com")


def make_profile(**overrides) -> dict:
    profile = {
        "business_name":       ANSWERS["business_name"],
        "company_description": ANSWERS["company_description"],
        "location":            ANSWERS["location"],
        "partners_info":       [{"info": ANSWERS["partners_info"]}],
        "color_preference":    ANSWERS["color_preference"],
        "style_preference":    ANSWERS["style_preference"],
    }
    profile.update(overrides)
    return profile


def answers_in_order() -> list[str]:
    return [ANSWERS[q.field] for q in QUESTIONS]


def long_guide(doc_type: DocumentType = DocumentType.HR, sections: int = 3) -> str:
    """Markdown guide comfortably above the minimum content length."""
    lines = [f"# {doc_type.value.title()} Guide", ""]
    for i in range(1, sections + 1):
        lines += [
            f"## {i}. Section {i}",
            "- Draft the offer letter and appointment letter templates",
            "- Set up payroll with provident fund deductions",
            "**Important**",
            "Keep statutory registers up to date and review them every quarter.",
            "",
        ]
    return "\n".join(lines)


class FakeTransport:
    """GuideTransport returning canned (status, payload) pairs per document type."""

    def __init__(self, responses: dict, default=None):
        self.responses = responses
        self.default   = default
        self.calls: list[tuple[DocumentType, dict]] = []

    def send(self, doc_type, body):
        self.calls.append((doc_type, body))
        response = self.responses.get(doc_type, self.default)
        if isinstance(response, Exception):
            raise response
        return response


def ok_payload(doc_type: DocumentType = DocumentType.HR) -> tuple[int, dict]:
    content = long_guide(doc_type)
    return 200, {
        "response":    content,
        "keyPoints":   ["Point one", "Point two"],
        "fullContent": content,
        "pdfUrl":      f"https://files.example.com/{doc_type.value}.pdf",
        "documentId":  None,
    }
