"""Progress output for prune runs."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.status import Status
from rich.table import Table

from ..cli.styles import (
    FEATURES_THEME,
    ICON_BRANCH,
    ICON_WARN,
    KNOWN_FEATURES_NOTICE,
    MUTED,
    PANEL_BOX,
    PRIMARY,
    SPINNER_COLOR,
    SPINNER_STYLE,
    TABLE_BOX,
    WARNING,
)


class PruneReporter:
    """Hooks called by the prune engine; the base class stays silent."""

    def start(self, feature_count: int, is_workspace: bool) -> None:
        pass

    def next_package(self, name: str, feature_count: int) -> None:
        pass

    def next_dependency(self, key: str, feature_count: int) -> None:
        pass

    def next_feature(self, index: int, name: str) -> None:
        pass

    def finish_feature(self) -> None:
        pass

    def finish_dependency(self, report) -> None:
        pass

    def known_features_notice(self) -> None:
        pass

    def finish(self, report) -> None:
        pass


class ConsoleReporter(PruneReporter):
    """Prints one line per dependency and a spinner for the feature under test."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(theme=FEATURES_THEME)
        self.is_terminal = self.console.is_terminal
        self.is_workspace = False

        self.feature_count = 0
        self.checked_count = 0
        self.package_name = "?"
        self.package_feature_count = 0
        self.package_checked_count = 0
        self.dependency_key = "?"
        self.dependency_feature_count = 0

        self._status: Status | None = None

    @property
    def _dependency_inset(self) -> str:
        return "    " if self.is_workspace else "  "

    def start(self, feature_count: int, is_workspace: bool) -> None:
        self.feature_count = feature_count
        self.is_workspace = is_workspace
        self.console.print(f"[header]workspace[/header] [{feature_count}]")
        if self.is_terminal:
            self._status = self.console.status(
                "", spinner=SPINNER_STYLE, spinner_style=SPINNER_COLOR
            )
            self._status.start()

    def next_package(self, name: str, feature_count: int) -> None:
        self.package_name = name
        self.package_feature_count = feature_count
        self.package_checked_count = 0
        if self.is_workspace:
            self.console.print()
            self.console.print(f"  [{PRIMARY}]{escape(name)}[/{PRIMARY}] [{feature_count}]")

    def next_dependency(self, key: str, feature_count: int) -> None:
        self.dependency_key = key
        self.dependency_feature_count = feature_count

    def next_feature(self, index: int, name: str) -> None:
        if self._status is None:
            return
        progress = f"Workspace [{self.checked_count}/{self.feature_count}]"
        if self.is_workspace:
            progress += (
                f" -> {escape(self.package_name)} "
                f"[{self.package_checked_count}/{self.package_feature_count}]"
            )
        self._status.update(
            f"{escape(self.dependency_key)} [{index}/{self.dependency_feature_count}] "
            f"{ICON_BRANCH} {escape(name)}  [{MUTED}]{progress}[/{MUTED}]"
        )

    def finish_feature(self) -> None:
        self.checked_count += 1
        self.package_checked_count += 1

    def finish_dependency(self, report) -> None:
        parts = [f"[known]{escape(name)}[/known]" for name in report.known]
        parts += [f"[removed]-{escape(name)}[/removed]" for name in report.prunable]
        removed = ",".join(parts) if parts else "0"
        self.console.print(
            f"{self._dependency_inset}{escape(report.dependency)} "
            f"[{removed}/{len(report.candidates)}]"
        )

    def known_features_notice(self) -> None:
        self.console.print()
        self.console.print(
            Panel(
                f"[{WARNING}]{ICON_WARN}[/{WARNING}] {KNOWN_FEATURES_NOTICE}",
                border_style=WARNING,
                box=PANEL_BOX,
            )
        )

    def finish(self, report) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

        edited = [dep for dep in report.dependencies if dep.prunable]
        self.console.print()
        if not edited:
            self.console.print(f"[{MUTED}]No features can be disabled.[/{MUTED}]")
            return

        table = Table(box=TABLE_BOX, title="Prunable features", title_style="header")
        table.add_column("Package")
        table.add_column("Dependency")
        table.add_column("Features", style="removed")
        for dep in edited:
            table.add_row(escape(dep.package), escape(dep.dependency), escape(", ".join(dep.prunable)))
        self.console.print(table)
        self.console.print(
            f"[{MUTED}]{report.prunable_count} feature(s) across {len(edited)} "
            f"dependenc{'y' if len(edited) == 1 else 'ies'}, "
            f"{report.oracle_runs} build(s) checked.[/{MUTED}]"
        )
