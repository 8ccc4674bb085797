"""
startup_companion — Guided chat wizard for first-time founders
===============================================================
Package containing the chat state machine, guide generation, PDF
rendering, configuration, and persistence utilities for StartUP Companion.

Module map
----------
  models.py              Enums, questionnaire, document registry, records.
  config.py              Settings loaded from .env; live vs mock detection.
  database.py            SQLite persistence (sessions, profiles, messages,
                         documents, ratings, mentors).

  flow.py                ChatFlow state machine + ConversationContext.
  document_generator.py  Four-way concurrent guide fan-out (client side).
  guide_service.py       Per-type guide endpoint: LLM → key points → PDF.
  mock_guides.py         Rule-based guide text (no OpenRouter key needed).
  pdf_generator.py       Markdown-ish text → paginated A4 PDF (reportlab).
  rating.py              Rating submission + mentor referral.

Conversation order
------------------
  initial ──"2"──► questioning (6 answers) ──► generating
  ┌── registration ─┐
  ├── branding      ┤  parallel via ThreadPoolExecutor
  ├── compliance    ┤
  └── hr            ┘
  → documents → rating ──≥4──► completed
                       └─≤3──► feedback → mentor cards → completed
"""
__version__ = "0.1.0"
