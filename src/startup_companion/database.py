"""
startup_companion/database.py — SQLite persistence layer
=========================================================
Stores every artefact of the guided chat so a session can be reviewed in
the Admin Dashboard and documents can be re-read after generation.

Design decisions
----------------
- **One connection per call** with ``check_same_thread=False``, closed through
  ``contextlib.closing`` even when a query fails; each of the four
  document-generation workers writes only its own row.
- **WAL journal mode**: dashboard reads run alongside the writers.
- **JSON blobs in TEXT columns**: business profile, key points, mentor
  specialisations and mentor cards.
- **Optimistic writes**: every public function catches ``sqlite3.Error``,
  logs it, and returns ``None`` / ``False`` / ``[]``.  The conversation
  never blocks on storage success.

Tables
------
  user_sessions        one row per guided session (status, rating, feedback)
  business_profiles    one row per session, merged on every answer
  chat_messages        append-only conversation log
  generated_documents  one row per (session, document_type), upserted
  ratings              one row per submitted rating
  mentors              expert directory used after negative feedback

Public API
----------
  init_db()                                   create tables if missing
  create_session(user_id, service_type)       → session_id | None
  update_session_status(session_id, status)   → bool
  get_session(session_id)                     → Session | None
  get_user_sessions(user_id) / get_all_sessions()
  get_business_profile(session_id)            → dict | None
  save_business_profile(session_id, user_id, profile) → bool  (merge-on-write)
  save_chat_message(...) / get_session_messages(session_id)
  upsert_document(doc)                        → document_id | None
  mark_document_status(session_id, user_id, doc_type, status) → bool
  get_documents_by_session(session_id)        → list[GeneratedDocument]
  save_rating(...) / save_rating_feedback(...) / get_all_ratings()
  set_mentor_assigned(session_id)             → bool
  get_mentor_for_service(service_type)        → Mentor | None
  upsert_mentor(mentor) / seed_demo_mentors()
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from startup_companion.config import get_settings
from startup_companion.models import (
    CONFIRMED_IDEA_FLOW,
    DocumentType,
    GeneratedDocument,
    GenerationStatus,
    Mentor,
    MentorCard,
    MessageRole,
    Session,
    SessionStatus,
    document_title,
    merge_profile,
)

logger = logging.getLogger(__name__)


def _db_path() -> Path:
    return get_settings().storage.db_path


def _now() -> str:
    return datetime.now().isoformat(timespec="microseconds")


def _get_conn() -> sqlite3.Connection:
    """Return a connection with row_factory set."""
    path = _db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db() -> None:
    """Create tables if they don't exist."""
    with closing(_get_conn()) as conn:
        conn.executescript("""
        CREATE TABLE IF NOT EXISTS user_sessions (
            id              TEXT PRIMARY KEY,
            user_id         TEXT NOT NULL,
            service_type    TEXT NOT NULL,
            status          TEXT NOT NULL DEFAULT 'active',
            started_at      TEXT NOT NULL,
            completed_at    TEXT,
            rating          INTEGER,
            rating_feedback TEXT,
            mentor_assigned INTEGER DEFAULT 0,
            created_at      TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS business_profiles (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id    TEXT UNIQUE NOT NULL,
            user_id       TEXT NOT NULL,
            profile_json  TEXT NOT NULL DEFAULT '{}',
            created_at    TEXT NOT NULL,
            updated_at    TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS chat_messages (
            id                INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id        TEXT NOT NULL,
            user_id           TEXT NOT NULL,
            message_type      TEXT NOT NULL,
            content           TEXT NOT NULL,
            mentor_cards_json TEXT,
            created_at        TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS generated_documents (
            id                TEXT PRIMARY KEY,
            session_id        TEXT NOT NULL,
            user_id           TEXT NOT NULL,
            document_type     TEXT NOT NULL,
            document_title    TEXT NOT NULL,
            key_points        TEXT NOT NULL DEFAULT '[]',
            full_content      TEXT NOT NULL DEFAULT '',
            pdf_url           TEXT,
            pdf_file_name     TEXT,
            generation_status TEXT NOT NULL DEFAULT 'generating',
            service_type      TEXT NOT NULL,
            created_at        TEXT NOT NULL,
            updated_at        TEXT NOT NULL,
            UNIQUE (session_id, document_type)
        );
        CREATE TABLE IF NOT EXISTS ratings (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id    TEXT NOT NULL,
            user_id       TEXT NOT NULL,
            service_type  TEXT NOT NULL,
            rating        INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            feedback      TEXT,
            created_at    TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS mentors (
            id                  TEXT PRIMARY KEY,
            name                TEXT NOT NULL,
            email               TEXT NOT NULL,
            phone               TEXT,
            specialization_json TEXT NOT NULL DEFAULT '[]',
            service_types_json  TEXT NOT NULL DEFAULT '[]',
            is_active           INTEGER DEFAULT 1
        );
        """)
        conn.commit()


# ─── Sessions ────────────────────────────────────────────────────────────────

def _session_from_row(row: sqlite3.Row) -> Session:
    d = dict(row)
    d["mentor_assigned"] = bool(d.get("mentor_assigned"))
    return Session(**d)


def create_session(user_id: str, service_type: str = CONFIRMED_IDEA_FLOW) -> Optional[str]:
    """Open a new active session and return its id, or None on failure."""
    session_id = str(uuid.uuid4())
    now = _now()
    try:
        with closing(_get_conn()) as conn:
            conn.execute(
                """
                INSERT INTO user_sessions (id, user_id, service_type, status, started_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (session_id, user_id, service_type, SessionStatus.ACTIVE.value, now, now),
            )
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error creating session for %s: %s", user_id, exc)
        return None
    return session_id


def update_session_status(session_id: str, status: SessionStatus) -> bool:
    """Set the session status; completing a session also stamps completed_at."""
    status = SessionStatus(status)
    try:
        with closing(_get_conn()) as conn:
            if status is SessionStatus.COMPLETED:
                conn.execute(
                    "UPDATE user_sessions SET status = ?, completed_at = ? WHERE id = ?",
                    (status.value, _now(), session_id),
                )
            else:
                conn.execute(
                    "UPDATE user_sessions SET status = ? WHERE id = ?",
                    (status.value, session_id),
                )
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error updating session %s: %s", session_id, exc)
        return False
    return True


def get_session(session_id: str) -> Optional[Session]:
    try:
        with closing(_get_conn()) as conn:
            row = conn.execute("SELECT * FROM user_sessions WHERE id = ?", (session_id,)).fetchone()
    except sqlite3.Error as exc:
        logger.error("Error fetching session %s: %s", session_id, exc)
        return None
    return _session_from_row(row) if row else None


def get_user_sessions(user_id: str) -> list[Session]:
    """All sessions of a user, newest first."""
    try:
        with closing(_get_conn()) as conn:
            rows = conn.execute(
                "SELECT * FROM user_sessions WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            ).fetchall()
    except sqlite3.Error as exc:
        logger.error("Error fetching sessions for %s: %s", user_id, exc)
        return []
    return [_session_from_row(r) for r in rows]


def get_all_sessions() -> list[Session]:
    """Fetch every session for the admin dashboard."""
    try:
        with closing(_get_conn()) as conn:
            rows = conn.execute("SELECT * FROM user_sessions ORDER BY created_at DESC").fetchall()
    except sqlite3.Error as exc:
        logger.error("Error fetching sessions: %s", exc)
        return []
    return [_session_from_row(r) for r in rows]


# ─── Business profiles ───────────────────────────────────────────────────────

def get_business_profile(session_id: str) -> Optional[dict[str, Any]]:
    try:
        with closing(_get_conn()) as conn:
            row = conn.execute(
                "SELECT profile_json FROM business_profiles WHERE session_id = ?",
                (session_id,),
            ).fetchone()
    except sqlite3.Error as exc:
        logger.error("Error fetching business profile %s: %s", session_id, exc)
        return None
    return json.loads(row["profile_json"]) if row else None


def save_business_profile(session_id: str, user_id: str, profile: dict[str, Any]) -> bool:
    """
    Insert the profile on first answer, otherwise merge it into the stored
    one.  Empty incoming values never overwrite stored answers.
    """
    now = _now()
    try:
        with closing(_get_conn()) as conn:
            row = conn.execute(
                "SELECT profile_json FROM business_profiles WHERE session_id = ?",
                (session_id,),
            ).fetchone()
            if row:
                merged = merge_profile(json.loads(row["profile_json"]), profile)
                conn.execute(
                    "UPDATE business_profiles SET profile_json = ?, updated_at = ? WHERE session_id = ?",
                    (json.dumps(merged), now, session_id),
                )
            else:
                conn.execute(
                    """
                    INSERT INTO business_profiles (session_id, user_id, profile_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (session_id, user_id, json.dumps(merge_profile({}, profile)), now, now),
                )
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error updating business profile %s: %s", session_id, exc)
        return False
    return True


# ─── Chat log ────────────────────────────────────────────────────────────────

def save_chat_message(
    session_id: str,
    user_id: str,
    role: MessageRole,
    content: str,
    mentor_cards: Optional[list[MentorCard]] = None,
) -> bool:
    """Append one message to the session log."""
    cards_json = json.dumps([c.model_dump() for c in mentor_cards]) if mentor_cards else None
    try:
        with closing(_get_conn()) as conn:
            conn.execute(
                """
                INSERT INTO chat_messages
                    (session_id, user_id, message_type, content, mentor_cards_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (session_id, user_id, MessageRole(role).value, content, cards_json, _now()),
            )
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error saving chat message for %s: %s", session_id, exc)
        return False
    return True


def get_session_messages(session_id: str) -> list[dict]:
    """Messages of a session in the order they were written."""
    try:
        with closing(_get_conn()) as conn:
            rows = conn.execute(
                "SELECT * FROM chat_messages WHERE session_id = ? ORDER BY id ASC",
                (session_id,),
            ).fetchall()
    except sqlite3.Error as exc:
        logger.error("Error fetching messages for %s: %s", session_id, exc)
        return []
    messages = []
    for r in rows:
        d = dict(r)
        d["mentor_cards"] = json.loads(d.pop("mentor_cards_json") or "[]")
        messages.append(d)
    return messages


# ─── Generated documents ─────────────────────────────────────────────────────

def _document_from_row(row: sqlite3.Row) -> GeneratedDocument:
    key_points = json.loads(row["key_points"] or "[]")
    return GeneratedDocument(
        id            = row["id"],
        session_id    = row["session_id"],
        user_id       = row["user_id"],
        document_type = DocumentType(row["document_type"]),
        title         = row["document_title"],
        key_points    = key_points if isinstance(key_points, list) else [],
        full_content  = row["full_content"] or "",
        pdf_url       = row["pdf_url"],
        pdf_file_name = row["pdf_file_name"],
        status        = GenerationStatus(row["generation_status"]),
        service_type  = row["service_type"],
    )


def upsert_document(doc: GeneratedDocument) -> Optional[str]:
    """
    Insert or update the (session, type) document row and return its id.

    A terminal status (completed / failed) is never moved back to
    ``generating``; such a write is ignored.
    """
    now = _now()
    try:
        with closing(_get_conn()) as conn:
            existing = conn.execute(
                """
                SELECT id, generation_status FROM generated_documents
                WHERE session_id = ? AND document_type = ?
                """,
                (doc.session_id, doc.document_type.value),
            ).fetchone()

            if existing is None:
                doc_id = doc.id or str(uuid.uuid4())
                conn.execute(
                    """
                    INSERT INTO generated_documents
                        (id, session_id, user_id, document_type, document_title, key_points,
                         full_content, pdf_url, pdf_file_name, generation_status, service_type,
                         created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (doc_id, doc.session_id, doc.user_id, doc.document_type.value, doc.title,
                     json.dumps(doc.key_points), doc.full_content, doc.pdf_url, doc.pdf_file_name,
                     doc.status.value, doc.service_type, now, now),
                )
            else:
                doc_id = existing["id"]
                current = GenerationStatus(existing["generation_status"])
                if current.is_terminal and doc.status is GenerationStatus.GENERATING:
                    return doc_id
                if doc.status is GenerationStatus.FAILED:
                    conn.execute(
                        """
                        UPDATE generated_documents SET generation_status = ?, updated_at = ?
                        WHERE id = ?
                        """,
                        (doc.status.value, now, doc_id),
                    )
                else:
                    conn.execute(
                        """
                        UPDATE generated_documents SET
                            document_title = ?, key_points = ?, full_content = ?,
                            pdf_url = ?, pdf_file_name = ?, generation_status = ?,
                            service_type = ?, updated_at = ?
                        WHERE id = ?
                        """,
                        (doc.title, json.dumps(doc.key_points), doc.full_content, doc.pdf_url,
                         doc.pdf_file_name, doc.status.value, doc.service_type, now, doc_id),
                    )
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error storing %s document for %s: %s",
                     doc.document_type.value, doc.session_id, exc)
        return None
    return doc_id


def mark_document_status(
    session_id: str,
    user_id: str,
    doc_type: DocumentType,
    status: GenerationStatus,
) -> bool:
    """Record a bare status change (placeholder or failure) for one document."""
    doc = GeneratedDocument(
        session_id    = session_id,
        user_id       = user_id,
        document_type = doc_type,
        title         = document_title(doc_type),
        status        = status,
    )
    return upsert_document(doc) is not None


def get_documents_by_session(session_id: str) -> list[GeneratedDocument]:
    try:
        with closing(_get_conn()) as conn:
            rows = conn.execute(
                "SELECT * FROM generated_documents WHERE session_id = ? ORDER BY created_at ASC",
                (session_id,),
            ).fetchall()
    except sqlite3.Error as exc:
        logger.error("Error loading documents for %s: %s", session_id, exc)
        return []
    return [_document_from_row(r) for r in rows]


# ─── Ratings ─────────────────────────────────────────────────────────────────

def save_rating(session_id: str, user_id: str, service_type: str, rating: int) -> bool:
    """Store a rating row and copy the value onto the session."""
    try:
        with closing(_get_conn()) as conn:
            conn.execute(
                """
                INSERT INTO ratings (session_id, user_id, service_type, rating, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (session_id, user_id, service_type, rating, _now()),
            )
            conn.execute("UPDATE user_sessions SET rating = ? WHERE id = ?", (rating, session_id))
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error submitting rating for %s: %s", session_id, exc)
        return False
    return True


def save_rating_feedback(session_id: str, feedback: str) -> bool:
    """Attach free-text feedback to the latest rating and the session."""
    try:
        with closing(_get_conn()) as conn:
            conn.execute(
                """
                UPDATE ratings SET feedback = ?
                WHERE id = (SELECT MAX(id) FROM ratings WHERE session_id = ?)
                """,
                (feedback, session_id),
            )
            conn.execute(
                "UPDATE user_sessions SET rating_feedback = ? WHERE id = ?",
                (feedback, session_id),
            )
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error saving feedback for %s: %s", session_id, exc)
        return False
    return True


def get_all_ratings() -> list[dict]:
    try:
        with closing(_get_conn()) as conn:
            rows = conn.execute("SELECT * FROM ratings ORDER BY created_at DESC").fetchall()
    except sqlite3.Error as exc:
        logger.error("Error fetching ratings: %s", exc)
        return []
    return [dict(r) for r in rows]


def set_mentor_assigned(session_id: str) -> bool:
    try:
        with closing(_get_conn()) as conn:
            conn.execute("UPDATE user_sessions SET mentor_assigned = 1 WHERE id = ?", (session_id,))
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error flagging mentor for %s: %s", session_id, exc)
        return False
    return True


# ─── Mentors ─────────────────────────────────────────────────────────────────

def _mentor_from_row(row: sqlite3.Row) -> Mentor:
    return Mentor(
        id             = row["id"],
        name           = row["name"],
        email          = row["email"],
        phone          = row["phone"],
        specialization = json.loads(row["specialization_json"] or "[]"),
        service_types  = json.loads(row["service_types_json"] or "[]"),
        is_active      = bool(row["is_active"]),
    )


def get_mentor_for_service(service_type: str) -> Optional[Mentor]:
    """Return the first active mentor covering *service_type*, or None."""
    try:
        with closing(_get_conn()) as conn:
            rows = conn.execute(
                "SELECT * FROM mentors WHERE is_active = 1 ORDER BY name ASC"
            ).fetchall()
    except sqlite3.Error as exc:
        logger.error("Error fetching mentor for %s: %s", service_type, exc)
        return None
    for row in rows:
        mentor = _mentor_from_row(row)
        if service_type in mentor.service_types:
            return mentor
    return None


def upsert_mentor(mentor: Mentor) -> bool:
    try:
        with closing(_get_conn()) as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO mentors
                    (id, name, email, phone, specialization_json, service_types_json, is_active)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (mentor.id, mentor.name, mentor.email, mentor.phone,
                 json.dumps(mentor.specialization), json.dumps(mentor.service_types),
                 int(mentor.is_active)),
            )
            conn.commit()
    except sqlite3.Error as exc:
        logger.error("Error saving mentor %s: %s", mentor.id, exc)
        return False
    return True


# ─── Demo seed data ──────────────────────────────────────────────────────────

_SEED_MENTORS: list[Mentor] = [
    Mentor(
        id             = "mentor-registration",
        name           = "Ananya Iyer",
        email          = "ananya.iyer@startupcompanion.in",
        phone          = "+91 98450 11223",
        specialization = ["Company Incorporation", "LLP Formation", "GST Registration"],
        service_types  = ["registration"],
    ),
    Mentor(
        id             = "mentor-branding",
        name           = "Rohan Mehta",
        email          = "rohan.mehta@startupcompanion.in",
        phone          = "+91 99001 44567",
        specialization = ["Brand Identity", "Visual Design", "Positioning"],
        service_types  = ["branding"],
    ),
    Mentor(
        id             = "mentor-compliance",
        name           = "Kavita Rao",
        email          = "kavita.rao@startupcompanion.in",
        phone          = None,
        specialization = ["Corporate Law", "Tax Compliance", "Licensing"],
        service_types  = ["compliance"],
    ),
    Mentor(
        id             = "mentor-hr",
        name           = "Vikram Singh",
        email          = "vikram.singh@startupcompanion.in",
        phone          = "+91 97400 78901",
        specialization = ["HR Policy", "Payroll", "Talent Acquisition"],
        service_types  = ["hr"],
    ),
]


def seed_demo_mentors() -> None:
    """Insert the demo mentor directory (idempotent)."""
    for mentor in _SEED_MENTORS:
        upsert_mentor(mentor)
