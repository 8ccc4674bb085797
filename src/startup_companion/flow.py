"""
flow.py – Guided chat state machine
====================================
Drives the confirmed-idea conversation:

    initial → questioning → generating → documents → rating → completed

All conversation state lives in a ``ConversationContext`` that the caller
owns (one per signed-in user / browser session) and passes into every
``ChatFlow`` call.  ``ChatFlow`` itself holds only collaborators and
pacing delays, so one instance can serve any number of conversations.

Rating stage
------------
``ctx.rating`` is a tagged sub-state ``RatingState(value, pending_feedback)``.
The numeric branch is tried first and only accepts a rating while none has
been recorded; once a low rating leaves feedback pending, every further
input (``"7"`` included) is consumed as feedback text.

Persistence calls are optimistic: a failed write is logged by the store
and the conversation carries on.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from startup_companion import database
from startup_companion.config import FlowConfig, get_settings
from startup_companion.document_generator import DocumentGeneratorClient
from startup_companion.models import (
    CONFIRMED_IDEA_FLOW,
    DOCUMENT_TYPES,
    QUESTIONS,
    ChatMessage,
    DocumentCompleted,
    DocumentOutcome,
    DocumentType,
    FlowStage,
    GeneratedDocument,
    GenerationStatus,
    MentorCard,
    MessageRole,
    RatingState,
    SessionStatus,
    UserIdentity,
    answer_value,
    document_title,
    merge_profile,
)
from startup_companion.rating import RatingResolver, parse_rating

logger = logging.getLogger(__name__)


# ─── Message copy ────────────────────────────────────────────────────────────

WELCOME_MESSAGE = (
    "Welcome to StartUP Companion! I'm here to help you launch your business.\n\n"
    "Please choose an option:\n\n"
    "1. Idea Tuning - My idea is not firmed up yet\n"
    "2. Confirmed Idea - I'm ready to get my business documents\n\n"
    "Just type the number (1 or 2) to get started!"
)
IDEA_TUNING_MESSAGE = (
    "Idea Tuning service will be available soon! This feature will help you refine "
    "and validate your business concept.\n\n"
    "For now, if you have a confirmed idea, please type \"2\" to proceed with document generation."
)
CHOICE_REPROMPT = "Please type 1 for Idea Tuning or 2 for Confirmed Idea to proceed."
PROCESSING_MESSAGE = (
    "Perfect! I have all the information I need.\n\n"
    "Processing your information and generating your business documents...\n\n"
    "This may take a few moments. Please wait."
)
BUSY_MESSAGE = "Your documents are still being generated. Please wait a moment."
RATING_REQUEST = (
    "How would you rate your experience?\n\n"
    "Please type a number from 1-5:\n\n"
    "1 ⭐ - Poor\n"
    "2 ⭐⭐ - Fair\n"
    "3 ⭐⭐⭐ - Good\n"
    "4 ⭐⭐⭐⭐ - Very Good\n"
    "5 ⭐⭐⭐⭐⭐ - Excellent"
)
FEEDBACK_REQUEST = (
    "We're sorry to hear that. Could you briefly tell us what went wrong or what we "
    "could improve? Your feedback helps us serve you better."
)
CLOSING_MESSAGE = (
    "All your documents are available in the document tab. You can view or download "
    "them anytime. Thank you for using StartUP Companion!"
)
FEEDBACK_THANKS = (
    "Thank you for your feedback. Let us connect you with our expert mentors who can "
    "provide personalized guidance for each area of your business."
)
MENTORS_HEADING = "📞 Your Recommended Mentors"
INVALID_RATING = "Please provide a valid rating between 1 and 5."

HIGH_RATING = 4


def question_prompt(index: int, intro: str) -> str:
    return f"{intro}\n\nQuestion {index + 1} of {len(QUESTIONS)}:\n{QUESTIONS[index].prompt}"


# ─── Conversation context ────────────────────────────────────────────────────

@dataclass
class ConversationContext:
    """Everything one conversation needs between turns."""
    user:           UserIdentity
    stage:          FlowStage = FlowStage.INITIAL
    session_id:     Optional[str] = None
    question_index: int = 0
    profile:        dict = field(default_factory=dict)
    rating:         RatingState = field(default_factory=RatingState)
    documents:      list[GeneratedDocument] = field(default_factory=list)
    outcomes:       dict[DocumentType, DocumentOutcome] = field(default_factory=dict)
    messages:       list[ChatMessage] = field(default_factory=list)


# ─── State machine ───────────────────────────────────────────────────────────

class ChatFlow:

    def __init__(
        self,
        generator: DocumentGeneratorClient | None = None,
        resolver: RatingResolver | None = None,
        pacing: FlowConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._generator = generator or DocumentGeneratorClient()
        self._resolver  = resolver or RatingResolver(CONFIRMED_IDEA_FLOW)
        self._pacing    = pacing or get_settings().flow
        self._sleep     = sleep

    # ── Public interface ─────────────────────────────────────────────────────

    def start(self, user: UserIdentity) -> ConversationContext:
        """New conversation in the initial stage, greeted with the menu."""
        ctx = ConversationContext(user=user)
        self._emit(ctx, WELCOME_MESSAGE)
        return ctx

    def handle_input(self, ctx: ConversationContext, text: str) -> list[ChatMessage]:
        """Consume one user turn and return the replies it produced."""
        if not text.strip():
            return []
        self._record(ctx, ChatMessage(role=MessageRole.USER, content=text))
        before = len(ctx.messages)

        if ctx.stage in (FlowStage.INITIAL, FlowStage.COMPLETED):
            self._handle_initial_choice(ctx, text)
        elif ctx.stage is FlowStage.QUESTIONING:
            self._handle_answer(ctx, text)
        elif ctx.stage is FlowStage.RATING:
            self._handle_rating(ctx, text)
        else:
            self._emit(ctx, BUSY_MESSAGE)

        return ctx.messages[before:]

    def abandon(self, ctx: ConversationContext) -> None:
        """Sign-out mid-flow: an unfinished session is marked abandoned."""
        if ctx.session_id and ctx.stage is not FlowStage.COMPLETED:
            database.update_session_status(ctx.session_id, SessionStatus.ABANDONED)

    # ── Stage handlers ───────────────────────────────────────────────────────

    def _handle_initial_choice(self, ctx: ConversationContext, text: str) -> None:
        choice = text.strip()
        if choice == "1":
            self._emit(ctx, IDEA_TUNING_MESSAGE)
        elif choice == "2":
            self._open_session(ctx)
            self._emit(ctx, question_prompt(
                0, f"Great! I'll ask you {len(QUESTIONS)} quick questions to gather the information we need.",
            ))
        else:
            self._emit(ctx, CHOICE_REPROMPT)

    def _open_session(self, ctx: ConversationContext) -> None:
        ctx.session_id = database.create_session(ctx.user.id, CONFIRMED_IDEA_FLOW)
        if ctx.session_id is None:
            logger.warning("Continuing without a stored session for user %s", ctx.user.id)
        ctx.profile        = {}
        ctx.question_index = 0
        ctx.rating         = RatingState()
        ctx.documents      = []
        ctx.outcomes       = {}
        ctx.stage          = FlowStage.QUESTIONING

    def _handle_answer(self, ctx: ConversationContext, text: str) -> None:
        question = QUESTIONS[ctx.question_index]
        ctx.profile = merge_profile(ctx.profile, {question.field: answer_value(question.field, text)})
        if ctx.session_id:
            database.save_business_profile(ctx.session_id, ctx.user.id, ctx.profile)

        if ctx.question_index < len(QUESTIONS) - 1:
            ctx.question_index += 1
            self._emit(ctx, question_prompt(ctx.question_index, "Got it!"))
            return

        ctx.stage = FlowStage.GENERATING
        self._emit(ctx, PROCESSING_MESSAGE)
        self.generate_documents(ctx)

    def generate_documents(self, ctx: ConversationContext) -> None:
        """Fan out the four guides, re-read the stored results, then ask for a rating."""
        session_id = ctx.session_id or ""
        ctx.documents = [
            GeneratedDocument(
                session_id    = session_id,
                user_id       = ctx.user.id,
                document_type = doc_type,
                title         = document_title(doc_type),
                status        = GenerationStatus.GENERATING,
            )
            for doc_type in DOCUMENT_TYPES
        ]
        if ctx.session_id:
            self._generator.mark_generating(ctx.session_id, ctx.user.id)
        ctx.stage = FlowStage.DOCUMENTS

        ctx.outcomes  = self._generator.generate_all(session_id, ctx.user.id, ctx.profile)
        stored        = database.get_documents_by_session(ctx.session_id) if ctx.session_id else []
        ctx.documents = stored or self._documents_from_outcomes(ctx)

        self._sleep(self._pacing.documents_delay)
        ctx.stage  = FlowStage.RATING
        ctx.rating = RatingState()
        self._emit(ctx, self._summary(ctx) + "\n\n" + RATING_REQUEST)

    def _handle_rating(self, ctx: ConversationContext, text: str) -> None:
        value = parse_rating(text)
        state = ctx.rating

        if value is not None and state.value is None and not state.pending_feedback:
            self._accept_rating(ctx, value)
        elif state.pending_feedback:
            self._accept_feedback(ctx, text)
        else:
            self._emit(ctx, INVALID_RATING)

    def _accept_rating(self, ctx: ConversationContext, value: int) -> None:
        ctx.rating.value = value
        if ctx.session_id:
            self._resolver.submit_rating(ctx.session_id, ctx.user.id, value)

        cheer = " 🎉 We're glad you had a great experience!" if value >= HIGH_RATING else ""
        self._emit(ctx, f"Thank you for your {value}-star rating!{cheer}")

        if value < HIGH_RATING:
            self._sleep(self._pacing.feedback_delay)
            self._emit(ctx, FEEDBACK_REQUEST)
            ctx.rating.pending_feedback = True
        else:
            self._sleep(self._pacing.closing_delay)
            self._emit(ctx, CLOSING_MESSAGE)
            self._complete(ctx)

    def _accept_feedback(self, ctx: ConversationContext, text: str) -> None:
        ctx.rating.pending_feedback = False
        if ctx.session_id:
            self._resolver.record_feedback(ctx.session_id, text)
        self._emit(ctx, FEEDBACK_THANKS)

        cards = self._resolver.find_mentors(session_id=ctx.session_id)
        if cards:
            self._sleep(self._pacing.mentor_delay)
            self._emit(ctx, MENTORS_HEADING, mentor_cards=cards)
        self._complete(ctx)

    def _complete(self, ctx: ConversationContext) -> None:
        if ctx.session_id:
            database.update_session_status(ctx.session_id, SessionStatus.COMPLETED)
        ctx.stage = FlowStage.COMPLETED

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _documents_from_outcomes(self, ctx: ConversationContext) -> list[GeneratedDocument]:
        docs = []
        for doc_type in DOCUMENT_TYPES:
            outcome = ctx.outcomes.get(doc_type)
            completed = isinstance(outcome, DocumentCompleted)
            docs.append(GeneratedDocument(
                session_id    = ctx.session_id or "",
                user_id       = ctx.user.id,
                document_type = doc_type,
                title         = document_title(doc_type),
                key_points    = outcome.key_points if completed else [],
                full_content  = outcome.full_content if completed else "",
                pdf_url       = outcome.pdf_url if completed else None,
                status        = GenerationStatus.COMPLETED if completed else GenerationStatus.FAILED,
            ))
        return docs

    @staticmethod
    def _summary(ctx: ConversationContext) -> str:
        lines = []
        for doc in ctx.documents:
            mark = "✅" if doc.status is GenerationStatus.COMPLETED else "⚠️"
            note = "" if doc.status is GenerationStatus.COMPLETED else f" ({doc.status.value})"
            lines.append(f"{mark} {doc.title}{note}")
        failed = [d for d in ctx.documents if d.status is not GenerationStatus.COMPLETED]
        if not failed:
            heading = "🎉 All your business documents have been generated!"
        else:
            heading = "Your business documents are ready, but some could not be generated."
        return (
            f"{heading}\n\n" + "\n".join(lines)
            + "\n\nYou can view them in the document dashboard."
        )

    def _emit(
        self,
        ctx: ConversationContext,
        content: str,
        mentor_cards: Optional[list[MentorCard]] = None,
    ) -> ChatMessage:
        message = ChatMessage(role=MessageRole.AI, content=content, mentor_cards=mentor_cards or [])
        self._record(ctx, message)
        return message

    def _record(self, ctx: ConversationContext, message: ChatMessage) -> None:
        ctx.messages.append(message)
        if ctx.session_id:
            database.save_chat_message(
                ctx.session_id, ctx.user.id, message.role, message.content,
                mentor_cards=message.mentor_cards or None,
            )
