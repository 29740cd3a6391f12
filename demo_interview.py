"""
demo_interview.py – Terminal run-through of the five-turn career conversation

Run:
    python demo_interview.py

Requires:
    Network access to the AI proxy (CAREER_INTEL_API_ENDPOINT, defaults to the
    hosted proxy). See .env.example for the other settings.

At the end the deliverable is saved next to the session export as
career-intelligence-YYYY-MM-DD.md / .json in the current directory.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# ── make src/ importable without installing the package ──────────────────────
sys.path.insert(0, str(Path(__file__).parent / "src"))

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from career_intel.config import get_settings
from career_intel.controller import MIN_RESPONSE_CHARS, ConversationController, meets_min_length
from career_intel.export import export_filename, export_to_json
from career_intel.model_client import ModelCallError, ModelClient
from career_intel.presenter import StepStatus, active_card, deliverable_card, progress_steps

console = Console()

STATUS_STYLE = {
    StepStatus.DONE:     "green",
    StepStatus.ACTIVE:   "bold magenta",
    StepStatus.UPCOMING: "dim",
}


# ─── Display helpers ─────────────────────────────────────────────────────────

def show_progress(ctl: ConversationController) -> None:
    cells = [
        f"[{STATUS_STYLE[s.status]}]{s.step}. {s.label}[/{STATUS_STYLE[s.status]}]"
        for s in progress_steps(ctl.current_step, ctl.is_complete)
    ]
    console.print("  →  ".join(cells))


def ask_response(ctl: ConversationController) -> str:
    card = active_card(ctl)
    console.print()
    show_progress(ctl)
    if card.coach_message:
        console.print(Panel(Markdown(card.coach_message), title="[bold]Coach[/bold]",
                            border_style="cyan"))
    if card.question_text:
        console.print(Panel(card.question_text, title=f"[bold]Question {card.step}[/bold]",
                            border_style="magenta"))

    while True:
        text = Prompt.ask(f"[bold]Your answer[/bold] [dim]({card.placeholder})[/dim]")
        if meets_min_length(text):
            return text
        console.print(f"[yellow]Please write at least {MIN_RESPONSE_CHARS} characters.[/yellow]")


def show_summary(ctl: ConversationController) -> None:
    doc = ctl.export()
    meta = doc["metadata"]
    table = Table(box=box.ROUNDED, show_header=False, padding=(0, 1))
    table.add_column("Key",   style="bold cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Path taken", " → ".join(str(v) for v in doc["path_taken"].values()))
    table.add_row("Invitation", doc["invitation_option"] or "—")
    table.add_row("Duration",   f"{doc['duration_seconds']}s")
    table.add_row("Tokens",     f"{meta['total_input_tokens']} in / {meta['total_output_tokens']} out")
    console.print(Panel(table, title="[bold]Session[/bold]", border_style="green"))


def save_outputs(ctl: ConversationController) -> None:
    json_path = Path(export_filename())
    md_path   = json_path.with_suffix(".md")
    json_path.write_text(export_to_json(ctl.export()), encoding="utf-8")
    md_path.write_text(deliverable_card(ctl.state).markdown_source + "\n", encoding="utf-8")
    console.print(f"[dim]Saved {md_path} and {json_path}[/dim]")


# ─── Main ────────────────────────────────────────────────────────────────────

def run(ctl: ConversationController) -> None:
    while not ctl.is_complete:
        text = ask_response(ctl)
        while True:
            try:
                with console.status("Thinking…"):
                    ctl.submit(text)
                break
            except ModelCallError as exc:
                console.print(f"[bold red]AI service error:[/bold red] {exc.message}")
                if not Confirm.ask("Try again?", default=True):
                    raise KeyboardInterrupt from exc
                text = ctl.pending_input or text

    card = deliverable_card(ctl.state)
    console.print()
    console.rule("[bold green]Your positioning[/bold green]")
    console.print(Markdown(card.markdown_source))
    console.print()
    show_summary(ctl)
    save_outputs(ctl)


def main() -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    settings = get_settings()

    console.print()
    console.print(Panel(
        "[bold]Career Intelligence[/bold]\n"
        f"[dim]Five questions about where you are headed  •  model {settings.engine.model}[/dim]",
        style="on dark_violet",
        expand=False,
    ))

    try:
        ctl = ConversationController(ModelClient(settings.engine), settings.engine)
        run(ctl)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)

    except Exception:
        console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
