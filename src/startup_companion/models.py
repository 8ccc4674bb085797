"""
Data models for StartUP Companion.

Enumerations, the fixed questionnaire, the document-type registry, and the
record types shared by the store, the generator and the chat flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


# ─── Enumerations ────────────────────────────────────────────────────────────

class SessionStatus(str, Enum):
    ACTIVE    = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class DocumentType(str, Enum):
    """The four business guides produced for every confirmed idea."""
    REGISTRATION = "registration"
    BRANDING     = "branding"
    COMPLIANCE   = "compliance"
    HR           = "hr"


class GenerationStatus(str, Enum):
    GENERATING = "generating"
    COMPLETED  = "completed"
    FAILED     = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not GenerationStatus.GENERATING


class MessageRole(str, Enum):
    USER = "user"
    AI   = "ai"


class FlowStage(str, Enum):
    """Phase of the guided conversation."""
    INITIAL     = "initial"
    QUESTIONING = "questioning"
    GENERATING  = "generating"
    DOCUMENTS   = "documents"
    RATING      = "rating"
    COMPLETED   = "completed"


# Service tag stored on sessions, documents and ratings for this flow
CONFIRMED_IDEA_FLOW = "confirmed_idea_flow"

SERVICE_DISPLAY_NAMES: dict[str, str] = {
    "idea_tuning":             "Idea Tuning",
    "registration":            "Registration",
    "registration_guide_guru": "Registration Guide Guru",
    "compliance":              "Compliance",
    "branding":                "Branding",
    "hr_setup":                "HR Setup",
    "financial_planning":      "Financial Planning",
    "confirmed_idea_flow":     "Confirmed Idea Flow",
}


def get_service_display_name(service_type: str) -> str:
    return SERVICE_DISPLAY_NAMES.get(service_type, service_type)


# ─── Questionnaire ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Question:
    index:  int
    field:  str
    prompt: str


QUESTIONS: tuple[Question, ...] = (
    Question(0, "business_name",       "What is the company name or preferred company name?"),
    Question(1, "company_description", "Please provide a brief description of the company or company website"),
    Question(2, "location",            "Which location will the business operate in?"),
    Question(3, "partners_info",       "Who will be the partners or directors? (How many and their roles?)"),
    Question(4, "color_preference",    "What color tone would you prefer for branding? (Earthy, Bright, Professional, etc.)"),
    Question(5, "style_preference",    "What style would you prefer? (Conservative/Classic, Modern/Contemporary, Expressive/Bold)"),
)

PROFILE_FIELDS: list[str] = [q.field for q in QUESTIONS]

# Answers to these fields are wrapped as a structured list, not stored raw
STRUCTURED_FIELDS = {"partners_info"}


def answer_value(field_name: str, raw_answer: str) -> Any:
    """Shape a raw answer the way the business profile stores it."""
    if field_name in STRUCTURED_FIELDS:
        return [{"info": raw_answer}]
    return raw_answer


# ─── Document registry ───────────────────────────────────────────────────────

DOCUMENT_TYPES: list[DocumentType] = [
    DocumentType.REGISTRATION,
    DocumentType.BRANDING,
    DocumentType.COMPLIANCE,
    DocumentType.HR,
]

DOCUMENT_META: dict[DocumentType, dict[str, str]] = {
    DocumentType.REGISTRATION: {
        "title":    "Company Registration Guide",
        "colour":   "#3B82F6",
        "function": "registration-guide-guru",
    },
    DocumentType.BRANDING: {
        "title":    "Branding Strategy Guide",
        "colour":   "#9333EA",
        "function": "branding-guide-guru",
    },
    DocumentType.COMPLIANCE: {
        "title":    "Compliance & Legal Guide",
        "colour":   "#10B981",
        "function": "compliance-guide-guru",
    },
    DocumentType.HR: {
        "title":    "HR Setup Guide",
        "colour":   "#F97316",
        "function": "hr-guide-guru",
    },
}


def document_title(doc_type: DocumentType) -> str:
    return DOCUMENT_META.get(doc_type, {}).get("title", "Business Guide")


# ─── Identity ────────────────────────────────────────────────────────────────

@dataclass
class UserIdentity:
    """The signed-in user as handed over by the auth layer."""
    id:    str
    name:  str
    email: str = ""


# ─── Persisted records ───────────────────────────────────────────────────────

class Session(BaseModel):
    id:              str
    user_id:         str
    service_type:    str
    status:          SessionStatus = SessionStatus.ACTIVE
    started_at:      str
    completed_at:    Optional[str] = None
    rating:          Optional[int] = Field(default=None, ge=1, le=5)
    rating_feedback: Optional[str] = None
    mentor_assigned: bool = False
    created_at:      str


class MentorCard(BaseModel):
    """Display form of a mentor, one per service area."""
    name:      str
    email:     str
    phone:     str = ""
    expertise: str
    service:   str


class ChatMessage(BaseModel):
    role:         MessageRole
    content:      str
    timestamp:    datetime = Field(default_factory=datetime.now)
    mentor_cards: list[MentorCard] = Field(default_factory=list)


class GeneratedDocument(BaseModel):
    id:            Optional[str] = None
    session_id:    str
    user_id:       str = ""
    document_type: DocumentType
    title:         str
    key_points:    list[str] = Field(default_factory=list)
    full_content:  str = ""
    pdf_url:       Optional[str] = None
    pdf_file_name: Optional[str] = None
    status:        GenerationStatus = GenerationStatus.GENERATING
    service_type:  str = CONFIRMED_IDEA_FLOW


class Mentor(BaseModel):
    id:             str
    name:           str
    email:          str
    phone:          Optional[str] = None
    specialization: list[str] = Field(default_factory=list)
    service_types:  list[str] = Field(default_factory=list)
    is_active:      bool = True


# ─── Generation outcomes ─────────────────────────────────────────────────────

@dataclass
class DocumentCompleted:
    document_type: DocumentType
    title:         str
    key_points:    list[str]
    full_content:  str
    pdf_url:       Optional[str] = None
    document_id:   Optional[str] = None

    status = GenerationStatus.COMPLETED


@dataclass
class DocumentFailed:
    document_type: DocumentType
    reason:        str

    status = GenerationStatus.FAILED


DocumentOutcome = Union[DocumentCompleted, DocumentFailed]


# ─── Rating sub-state ────────────────────────────────────────────────────────

@dataclass
class RatingState:
    """State carried while the flow sits in the rating stage."""
    value:            Optional[int] = None
    pending_feedback: bool = False


# ─── Profile helpers ─────────────────────────────────────────────────────────

def merge_profile(existing: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    """Non-destructive partial update: only non-empty incoming values overwrite."""
    merged = dict(existing)
    for key, value in update.items():
        if value is None or value == "":
            continue
        merged[key] = value
    return merged
