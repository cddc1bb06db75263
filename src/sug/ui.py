#!/usr/bin/env python

from typing import Optional, Sequence

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .constants import APP_NAME, OUTPUT_UNAVAILABLE
from .models import AliasProbe, Context, HistoryEntry
from .theme import create_console, get_theme

ALIAS_DISPLAY_LIMIT = 10


class UIManager:
    """Human-facing output: errors on stderr, the debug report on stdout"""

    def __init__(self, theme: Optional[dict] = None):
        self._t = get_theme(theme)
        self.console = create_console(theme, highlight=False)
        self.err_console = create_console(theme, stderr=True, highlight=False)

    def show_error(self, error_message):
        """Display error message as a single line"""
        self.err_console.print(f"[error]{APP_NAME}: {escape(str(error_message))}[/error]")

    def show_debug_report(self, context: Context, history: Sequence[HistoryEntry]):
        """Display the context and history that would be sent to the AI"""
        self.console.print(Panel(
            self._context_table(context),
            title="Collected Context",
            title_align="left",
            border_style=self._t["accent"]
        ))
        self.console.print(self._alias_table(context))
        self.console.print(self._history_table(history))

    def show_alias_probes(self, shell: str, probes: Sequence[AliasProbe]):
        """Display each alias collection step with its outcome"""
        table = Table(title=f"Alias Collection (shell: {escape(shell) or 'unknown'})", title_justify="left")
        table.add_column("#", justify="right", style=self._t["muted"])
        table.add_column("Source")
        table.add_column("Command", style=self._t["accent_alt"])
        table.add_column("Status")
        table.add_column("Output", justify="right")
        table.add_column("Aliases", justify="right")

        for index, probe in enumerate(probes, start=1):
            status = "[success]ok[/success]" if probe.succeeded else "[error]failed[/error]"
            table.add_row(
                str(index),
                probe.source,
                escape(probe.command),
                status,
                f"{probe.output_length} chars",
                str(probe.alias_count),
            )
            for line in probe.sample:
                table.add_row("", "", f"[muted]{escape(line)}[/muted]", "", "", "")

        if not probes:
            table.caption = "no alias sources for this shell"
        self.console.print(table)

    def _context_table(self, context: Context) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style=self._t["muted"])
        table.add_column()

        rows = [
            ("User", context.user),
            ("Directory", context.directory),
            ("Shell", context.shell),
            ("Terminal", context.terminal),
            ("System", context.system),
            ("Platform", context.platform),
            ("DateTime", context.timestamp.strftime("%Y-%m-%d %H:%M:%S")),
        ]

        if context.is_git_repo:
            rows.append(("Git", f"Repository (branch: {context.git_branch})"))
        else:
            rows.append(("Git", "Not a repository"))

        k8s = context.k8s
        if k8s is not None and k8s.is_available:
            rows.append(("Kubernetes", "Available"))
            rows.append(("  Context", k8s.current_context))
            rows.append(("  Namespace", k8s.current_namespace))
            if k8s.cluster_info:
                rows.append(("  Cluster", k8s.cluster_info))
        else:
            rows.append(("Kubernetes", "Not available"))

        for label, value in rows:
            table.add_row(label, escape(value))
        return table

    def _alias_table(self, context: Context) -> Table:
        table = Table(title=f"Shell Aliases ({len(context.aliases)} found)", title_justify="left")
        table.add_column("Alias", style=self._t["accent"])
        table.add_column("Command")

        for index, (name, command) in enumerate(context.aliases.items()):
            if index >= ALIAS_DISPLAY_LIMIT:
                table.caption = f"... and {len(context.aliases) - ALIAS_DISPLAY_LIMIT} more aliases"
                break
            table.add_row(escape(name), escape(command))
        return table

    def _history_table(self, history: Sequence[HistoryEntry]) -> Table:
        table = Table(title=f"Recent Command History ({len(history)} entries)", title_justify="left")
        table.add_column("#", justify="right", style=self._t["muted"])
        table.add_column("Time", style=self._t["muted"])
        table.add_column("Command", style=self._t["accent_alt"])
        table.add_column("Exit", justify="right")
        table.add_column("Duration")

        for index, entry in enumerate(history, start=1):
            exit_style = "error" if entry.exit_code else "success"
            table.add_row(
                str(index),
                entry.timestamp.strftime("%H:%M:%S"),
                escape(entry.command),
                f"[{exit_style}]{entry.exit_code}[/{exit_style}]",
                entry.duration,
            )
            if entry.output and entry.output != OUTPUT_UNAVAILABLE:
                table.add_row("", "", f"[muted]Output: {escape(entry.output)}[/muted]", "", "")
            if entry.error_output:
                table.add_row("", "", f"[error]Error: {escape(entry.error_output)}[/error]", "", "")
        return table
