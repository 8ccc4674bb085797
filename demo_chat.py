"""
demo_chat.py – Terminal demo of the StartUP Companion guided chat

Run:
    python demo_chat.py            # mock guides unless OPENROUTER_API_KEY is set
    FORCE_MOCK_MODE=true python demo_chat.py

Type "quit" at any prompt to leave; an unfinished session is marked abandoned.
"""

from __future__ import annotations

import logging
import sys
import uuid
from pathlib import Path

# ── make src/ importable without installing the package ──────────────────────
sys.path.insert(0, str(Path(__file__).parent / "src"))

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from startup_companion import database
from startup_companion.config import get_settings
from startup_companion.flow import ChatFlow, ConversationContext
from startup_companion.models import (
    ChatMessage,
    DOCUMENT_META,
    FlowStage,
    QUESTIONS,
    GenerationStatus,
    UserIdentity,
)

console = Console()

STATUS_STYLE = {
    GenerationStatus.GENERATING: "bold yellow",
    GenerationStatus.COMPLETED:  "bold green",
    GenerationStatus.FAILED:     "bold red",
}


# ─── Display helpers ─────────────────────────────────────────────────────────

def show_message(msg: ChatMessage) -> None:
    console.print(Panel(msg.content, title="[bold]🚀 Companion[/bold]", border_style="blue",
                        title_align="left"))
    if msg.mentor_cards:
        table = Table(box=box.ROUNDED, header_style="bold white on blue", padding=(0, 1))
        table.add_column("Service",   style="bold cyan", no_wrap=True)
        table.add_column("Mentor",    style="white")
        table.add_column("Expertise", style="dim white")
        table.add_column("Contact",   style="green")
        for card in msg.mentor_cards:
            contact = card.email + (f"\n{card.phone}" if card.phone else "")
            table.add_row(card.service, card.name, card.expertise, contact)
        console.print(table)


def show_documents(ctx: ConversationContext) -> None:
    """Summary table of the generated guides."""
    table = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_blue", padding=(0, 1))
    table.add_column("Guide",      min_width=28)
    table.add_column("Status",     justify="center")
    table.add_column("Key points", min_width=40)
    table.add_column("PDF",        style="dim white")
    for doc in ctx.documents:
        colour = DOCUMENT_META[doc.document_type]["colour"]
        style  = STATUS_STYLE[doc.status]
        table.add_row(
            f"[{colour}]{doc.title}[/{colour}]",
            f"[{style}]{doc.status.value.upper()}[/{style}]",
            "\n".join(f"• {p}" for p in doc.key_points) or "[dim]—[/dim]",
            doc.pdf_url or "[dim]—[/dim]",
        )
    console.print(Panel(table, title="[bold]Your Business Documents[/bold]", border_style="green"))


# ─── Main ────────────────────────────────────────────────────────────────────

def main() -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    settings = get_settings()
    console.print()
    console.print(Panel(
        "[bold]StartUP Companion[/bold]\n"
        "[dim]Your Business Launch Partner  •  "
        f"{'Live OpenRouter' if settings.live_mode else 'Mock guides'}[/dim]",
        style="on dark_blue",
        expand=False,
    ))

    database.init_db()
    database.seed_demo_mentors()
    flow = ChatFlow()

    name = Prompt.ask("[bold cyan]Your name[/bold cyan]", default="Demo Founder")
    user = UserIdentity(id=str(uuid.uuid4()), name=name)
    ctx  = flow.start(user)
    show_message(ctx.messages[-1])

    try:
        while True:
            text = Prompt.ask("[bold magenta]You[/bold magenta]")
            if text.strip().lower() in ("quit", "exit"):
                break
            before = ctx.stage
            if ctx.stage is FlowStage.QUESTIONING and ctx.question_index == len(QUESTIONS) - 1:
                with console.status("[bold green]Generating your business documents…"):
                    replies = flow.handle_input(ctx, text)
            else:
                replies = flow.handle_input(ctx, text)
            for reply in replies:
                show_message(reply)
                if reply.content.startswith(("🎉", "Your business documents")):
                    show_documents(ctx)
            if ctx.stage is FlowStage.COMPLETED and before is not FlowStage.COMPLETED:
                console.rule("[bold green]Session complete. Type 2 to start again, or quit[/bold green]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")

    except Exception:
        console.print_exception()
        flow.abandon(ctx)
        sys.exit(1)

    flow.abandon(ctx)


if __name__ == "__main__":
    main()
