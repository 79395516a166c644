import asyncio
import pathlib
from typing import Dict, List, Optional

from rich.console import Group
from rich.syntax import Syntax
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Footer, Header, Label, ListItem, ListView, Static
from textual.worker import Worker, WorkerState

from depimpact.models import DependencyChange, UsageSite
from depimpact.usage import UsageScanner

LEXERS = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
    ".py": "python",
    ".go": "go",
    ".java": "java",
    ".rb": "ruby",
    ".rs": "rust",
    ".tf": "terraform",
}


def lexer_for(path: str) -> str:
    return LEXERS.get(pathlib.PurePosixPath(path).suffix, "text")


class ChangeItem(ListItem):
    def __init__(self, change: DependencyChange):
        super().__init__()
        self.change = change
        self.status = "pending"  # pending, loading, done, error
        self.site_count: Optional[int] = None
        self._label = Label(self._get_display_text())

    def _get_display_text(self) -> str:
        status_icon = (
            "⏳"
            if self.status == "pending"
            else "🔄"
            if self.status == "loading"
            else "✅"
            if self.status == "done"
            else "❌"
        )
        site_info = f"  {self.site_count} sites" if self.site_count is not None else ""
        return (
            f"{status_icon} {self.change.name}\n"
            f"  {self.change.from_version} -> {self.change.to_version}{site_info}"
        )

    def compose(self) -> ComposeResult:
        yield self._label

    def update_status(self, status: str, site_count: Optional[int] = None) -> None:
        self.status = status
        if site_count is not None:
            self.site_count = site_count
        self._label.update(self._get_display_text())


class UsageViewer(VerticalScroll):
    can_focus = True

    def compose(self) -> ComposeResult:
        yield Static(id="usage-content")

    def update_usage(
        self, sites: List[UsageSite], status: str = "done", error: str = ""
    ) -> None:
        content = self.query_one("#usage-content", Static)
        if status == "loading":
            content.update(Text("Scanning source files...", style="bold yellow"))
            return
        elif status == "error":
            content.update(Text(error, style="bold red"))
            return

        if not sites:
            content.update(
                Text("No direct imports found in source files.", style="dim italic")
            )
            return

        renderables = []
        for site in sites:
            renderables.append(Text(site.path, style="bold"))
            renderables.append(
                Syntax("\n".join(site.lines), lexer_for(site.path), theme="monokai")
            )
            renderables.append(Text(""))
        content.update(Group(*renderables))

        self.scroll_home(animate=False)


class ImpactApp(App):
    CSS = """
    Screen {
        layout: vertical;
    }

    Horizontal {
        height: 1fr;
    }

    #change-list {
        width: 45;
        border-right: tall $primary;
        background: $surface;
    }

    #usage-viewer {
        width: 1fr;
        background: $background;
    }

    #usage-viewer:focus {
        border: tall $accent;
    }

    #usage-content {
        padding: 1;
    }

    ListItem {
        padding: 0 1;
        height: 3;
    }

    ListItem.loading {
        background: $accent 20%;
    }

    ListItem.error {
        color: $error;
    }

    #status-bar {
        height: 1;
        background: $primary-darken-2;
        color: $text-disabled;
        padding: 0 1;
        text-style: italic;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "refresh", "Rescan", show=True),
        Binding("up,k", "cursor_up", "Up", show=False),
        Binding("down,j", "cursor_down", "Down", show=False),
        Binding("u", "scroll_half_up", "Half Up", show=True),
        Binding("d", "scroll_half_down", "Half Down", show=True),
        Binding("space", "scroll_page_down", "Page Down", show=True),
        Binding("b", "scroll_page_up", "Page Up", show=True),
    ]

    def __init__(self, changes: List[DependencyChange], scanner: UsageScanner):
        super().__init__()
        self.changes = changes
        self.scanner = scanner
        self.usage: Dict[str, List[UsageSite]] = {}
        self.errors: Dict[str, str] = {}
        self.statuses: Dict[str, str] = {c.name: "pending" for c in changes}

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal():
            yield ListView(*[ChangeItem(c) for c in self.changes], id="change-list")
            yield UsageViewer(id="usage-viewer")
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "Dependency Impact"
        self.sub_title = f"{len(self.changes)} version changes"
        self.query_one("#change-list").focus()
        self.action_refresh()

    def action_cursor_up(self) -> None:
        self.query_one("#change-list", ListView).action_cursor_up()

    def action_cursor_down(self) -> None:
        self.query_one("#change-list", ListView).action_cursor_down()

    def action_scroll_half_up(self) -> None:
        viewer = self.query_one("#usage-viewer", UsageViewer)
        viewer.scroll_relative(y=-(viewer.size.height // 2), animate=False)

    def action_scroll_half_down(self) -> None:
        viewer = self.query_one("#usage-viewer", UsageViewer)
        viewer.scroll_relative(y=viewer.size.height // 2, animate=False)

    def action_scroll_page_up(self) -> None:
        viewer = self.query_one("#usage-viewer", UsageViewer)
        viewer.scroll_relative(y=-viewer.size.height, animate=False)

    def action_scroll_page_down(self) -> None:
        viewer = self.query_one("#usage-viewer", UsageViewer)
        viewer.scroll_relative(y=viewer.size.height, animate=False)

    def action_refresh(self) -> None:
        """Rescan usage of every changed dependency."""
        self.usage.clear()
        self.errors.clear()
        self.scanner.clear_cache()
        for item in self.query(ChangeItem):
            self.statuses[item.change.name] = "loading"
            self.scan_usage(item)
        self.query_one("#status-bar", Static).update("Scanning source files...")

    def _update_viewer(self, item: ChangeItem) -> None:
        name = item.change.name
        status = self.statuses.get(name, "pending")

        viewer = self.query_one("#usage-viewer", UsageViewer)
        if status == "loading":
            viewer.update_usage([], status="loading")
        elif status == "error":
            viewer.update_usage([], status="error", error=self.errors.get(name, ""))
        else:
            viewer.update_usage(self.usage.get(name, []))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if isinstance(item, ChangeItem):
            self._update_viewer(item)
            change = item.change
            self.query_one("#status-bar", Static).update(
                f"{change.ecosystem}: {change.name} ({change.from_version} -> {change.to_version})"
            )

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        item = event.item
        if isinstance(item, ChangeItem):
            self._update_viewer(item)
            self.query_one("#status-bar", Static).update(f"Dependency: {item.change.name}")

    def scan_usage(self, item: ChangeItem) -> None:
        item.update_status("loading")
        item.add_class("loading")
        item.remove_class("done", "error")
        self.run_worker(
            self._scan_task(item.change),
            name=f"scan-{item.change.name}",
            group="scanners",
            exit_on_error=False,
        )

    async def _scan_task(self, change: DependencyChange) -> tuple[str, List[UsageSite]]:
        loop = asyncio.get_running_loop()
        usage = await loop.run_in_executor(None, self.scanner.scan, [change])
        return change.name, usage.get(change.name, [])

    def _finish(self, name: str, status: str) -> None:
        # The same name can be listed twice, e.g. from package.json and its lock file
        self.statuses[name] = status
        for item in self.query(ChangeItem):
            if item.change.name == name:
                item.remove_class("loading")
                if status == "done":
                    item.update_status("done", site_count=len(self.usage.get(name, [])))
                else:
                    item.update_status("error")
                item.add_class(status)

                highlighted_item = self.query_one(
                    "#change-list", ListView
                ).highlighted_child
                if highlighted_item == item:
                    self._update_viewer(item)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.SUCCESS:
            result = event.worker.result
            if result is None:
                return
            name, sites = result
            self.usage[name] = sites
            self._finish(name, "done")
        elif event.state == WorkerState.ERROR:
            name = event.worker.name.removeprefix("scan-")
            self.errors[name] = f"Scan failed: {event.worker.error}"
            self._finish(name, "error")

    async def action_quit(self) -> None:
        self.scanner.fetcher.cleanup()
        self.exit()
