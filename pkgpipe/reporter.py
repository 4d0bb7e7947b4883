"""User-facing build reporter.

Builders receive a ``Reporter`` through ``BuildOptions`` and use it for every
message shown to the user.  Each call is rendered on a Rich console and also
recorded, so the orchestrator (and tests) can inspect what a run produced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.markup import escape


@dataclass(frozen=True)
class Artifact:
    """An artifact announced by a builder after a successful step."""

    path: Path
    kind: str


@dataclass
class ReportedMessage:
    level: str  # "info", "warning" or "error"
    text: str


@dataclass
class Reporter:
    """Rich-backed reporter with a record of everything it was told.

    Attributes:
        console: Console used for rendering. Pass ``Console(quiet=True)`` to
            record without printing.
        messages: Every info/warning/error message in call order.
        artifacts: Every artifact passed to :meth:`created`.
    """

    console: Console = field(default_factory=Console)
    messages: list[ReportedMessage] = field(default_factory=list)
    artifacts: list[Artifact] = field(default_factory=list)

    def info(self, message: str) -> None:
        self.messages.append(ReportedMessage("info", message))
        self.console.print(f"[cyan]>[/cyan] {escape(message)}", highlight=False)

    def warning(self, message: str) -> None:
        self.messages.append(ReportedMessage("warning", message))
        self.console.print(f"[bold yellow]warning[/bold yellow] {escape(message)}", highlight=False)

    def error(self, message: str) -> None:
        self.messages.append(ReportedMessage("error", message))
        self.console.print(f"[bold red]error[/bold red] {escape(message)}", highlight=False)

    def created(self, path: str | Path, kind: str) -> Artifact:
        """Announce an artifact written to *path* of the given *kind*."""
        artifact = Artifact(path=Path(path), kind=kind)
        self.artifacts.append(artifact)
        self.console.print(
            f"[green]+[/green] {kind:<8} [bold]{escape(str(artifact.path))}[/bold]", highlight=False
        )
        return artifact

    # ------------------------------------------------------------------
    # Record helpers
    # ------------------------------------------------------------------

    @property
    def warnings(self) -> list[str]:
        return [m.text for m in self.messages if m.level == "warning"]

    @property
    def errors(self) -> list[str]:
        return [m.text for m in self.messages if m.level == "error"]

    @property
    def infos(self) -> list[str]:
        return [m.text for m in self.messages if m.level == "info"]
