#!/usr/bin/env python3
"""Interactive tree viewer for Claude Code transcripts."""

import json
from pathlib import Path
from typing import ClassVar, Optional

from rich.console import RenderableType
from rich.syntax import Syntax
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.containers import Container, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Static, Tree
from textual.widgets.tree import TreeNode as TreeWidgetNode

from .classifier.tool_context import strip_line_numbers
from .config import DEFAULT_CONFIG, TreeConfig
from .highlight import resolve_lexer
from .loader import TranscriptView, load_transcript
from .models import DisplayStrategy, ResultNode, ToolNode, TreeNode

POPUP_THEME = "monokai"


def _input_arg(tool: Optional[ToolNode], key: str) -> Optional[str]:
    if tool is None or not isinstance(tool.tool_input, dict):
        return None
    value = tool.tool_input.get(key)
    return value if isinstance(value, str) and value else None


def _json_syntax(content: str) -> Syntax:
    try:
        pretty = json.dumps(json.loads(content), indent=2, ensure_ascii=False)
    except ValueError:
        pretty = content
    return Syntax(pretty, "json", theme=POPUP_THEME, line_numbers=True, word_wrap=True)


def build_popup_renderable(
    result: ResultNode, tool: Optional[ToolNode] = None
) -> RenderableType:
    """Renderable for a result's popup, chosen by its display strategy."""
    content = result.content
    classification = result.classification
    strategy = (
        classification.display_strategy
        if classification is not None
        else DisplayStrategy.ADAPTIVE_INLINE_OR_POPUP
    )

    if strategy in (
        DisplayStrategy.JSON_POPUP_ALWAYS,
        DisplayStrategy.JSON_POPUP_WITH_FOLDING,
    ):
        return _json_syntax(content)

    if strategy == DisplayStrategy.SYNTAX_HIGHLIGHTED_POPUP:
        file_path = _input_arg(tool, "file_path")
        file_type = classification.metadata.get("file_type") if classification else None
        lexer = resolve_lexer(file_path, file_type)
        return Syntax(
            strip_line_numbers(content),
            lexer,
            theme=POPUP_THEME,
            line_numbers=True,
            word_wrap=True,
        )

    if strategy == DisplayStrategy.TERMINAL_STYLE_POPUP:
        output = Text()
        command = _input_arg(tool, "command")
        if command:
            output.append(f"$ {command}\n", style="bold green")
        output.append_text(Text.from_ansi(content))
        return output

    if strategy == DisplayStrategy.ERROR_POPUP_HIGHLIGHTED:
        return Text(content, style="bold red")

    return Text(content)


class ContentPopupScreen(ModalScreen[None]):
    """Modal screen showing one result (or tool input) in full."""

    CSS = """
    ContentPopupScreen {
        align: center middle;
    }

    #popup-container {
        width: 90%;
        height: 90%;
        border: solid $primary;
        background: $surface;
    }

    #popup-header {
        dock: top;
        height: 1;
        background: $primary;
        color: $text;
        text-align: center;
    }

    #popup-footer {
        dock: bottom;
        height: 1;
        background: $primary-darken-2;
        color: $text-muted;
        text-align: center;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "dismiss", "Close", show=True),
        Binding("q", "dismiss", "Close", show=False),
    ]

    def __init__(self, title: str, body: RenderableType) -> None:
        super().__init__()
        self.popup_title = title
        self.body = body

    def compose(self) -> ComposeResult:
        with Container(id="popup-container"):
            yield Static(Text(self.popup_title), id="popup-header")
            with VerticalScroll(id="popup-scroll"):
                yield Static(self.body, id="popup-body")
            yield Static("Press ESC or q to close", id="popup-footer")


class TranscriptViewer(App[None]):
    """Collapsible tree of one transcript file."""

    CSS = """
    #status {
        dock: top;
        height: 1;
        background: $primary-darken-2;
        color: $text-muted;
        padding: 0 1;
    }

    #transcript-tree {
        height: 1fr;
    }
    """

    TITLE = "Claude Code Transcript"

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("q", "quit", "Quit"),
        Binding("r", "reload", "Reload"),
        Binding("p", "open_popup", "Popup"),
        Binding("e", "expand_all", "Expand all"),
        Binding("c", "collapse_all", "Collapse all"),
    ]

    def __init__(
        self,
        transcript_path: Path,
        limit: Optional[int] = None,
        config: TreeConfig = DEFAULT_CONFIG,
    ):
        super().__init__()
        self.transcript_path = Path(transcript_path)
        self.limit = limit
        self.config = config
        self.view: Optional[TranscriptView] = None
        # Result node id -> owning tool node, for popup context
        self._tool_for_result: dict[str, ToolNode] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="status")
        yield Tree("Loading...", id="transcript-tree")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = self.transcript_path.name
        self.load_view()
        self.query_one("#transcript-tree", Tree).focus()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_view(self) -> None:
        """Read the file and rebuild the whole tree."""
        self.view = load_transcript(self.transcript_path, self.limit, config=self.config)
        self.populate_tree(self.view.tree)
        self.update_status()

    def status_text(self) -> str:
        if self.view is None:
            return ""
        status = (
            f"{len(self.view.messages)} messages | {self.view.line_count} lines"
        )
        if self.view.errors:
            status += f" | {len(self.view.errors)} parse errors"
        result_info = self.view.result_info
        if result_info is not None and result_info.cost_usd is not None:
            status += f" | ${result_info.cost_usd:.4f}"
        return status

    def update_status(self) -> None:
        self.query_one("#status", Static).update(Text(self.status_text()))

    def populate_tree(self, root: TreeNode) -> None:
        tree: Tree[TreeNode] = self.query_one("#transcript-tree", Tree)
        tree.clear()
        self._tool_for_result.clear()
        tree.root.set_label(Text(root.display_text))
        tree.root.data = root
        for child in root.children:
            self._add_node(tree.root, child)
        if root.expanded:
            tree.root.expand()

    def _add_node(self, parent: TreeWidgetNode, node: TreeNode) -> None:
        label = Text(node.display_text)
        if isinstance(node, ResultNode) and node.use_rich_display:
            label.append(" ⧉", style="dim")

        if not node.children:
            parent.add_leaf(label, data=node)
            return

        widget_node = parent.add(label, data=node, expand=node.expanded)
        for child in node.children:
            if isinstance(node, ToolNode) and isinstance(child, ResultNode):
                self._tool_for_result[child.id] = node
            self._add_node(widget_node, child)

    # -------------------------------------------------------------------------
    # Events and actions
    # -------------------------------------------------------------------------

    def popup_for(self, node: Optional[TreeNode]) -> Optional[ContentPopupScreen]:
        """Popup screen for a node, or None when it has nothing to show."""
        if isinstance(node, ResultNode) and node.use_rich_display:
            tool = self._tool_for_result.get(node.id)
            title = f"{tool.tool_name} result" if tool is not None else "Result"
            if node.classification is not None:
                title += f" ({node.classification.category.value})"
            return ContentPopupScreen(title, build_popup_renderable(node, tool))
        if isinstance(node, ToolNode) and node.tool_input:
            body = _json_syntax(json.dumps(node.tool_input))
            return ContentPopupScreen(f"{node.tool_name} input", body)
        return None

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        node = event.node.data
        if isinstance(node, ResultNode):
            screen = self.popup_for(node)
            if screen is not None:
                self.push_screen(screen)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        if event.node.data is not None:
            event.node.data.expanded = True

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        if event.node.data is not None:
            event.node.data.expanded = False

    def action_open_popup(self) -> None:
        tree: Tree[TreeNode] = self.query_one("#transcript-tree", Tree)
        cursor = tree.cursor_node
        screen = self.popup_for(cursor.data if cursor is not None else None)
        if screen is not None:
            self.push_screen(screen)

    def action_reload(self) -> None:
        self.load_view()
        self.notify("Transcript reloaded")

    def action_expand_all(self) -> None:
        self.query_one("#transcript-tree", Tree).root.expand_all()

    def action_collapse_all(self) -> None:
        tree: Tree[TreeNode] = self.query_one("#transcript-tree", Tree)
        tree.root.collapse_all()
        tree.root.expand()


def run_viewer(
    transcript_path: Path,
    limit: Optional[int] = None,
    config: TreeConfig = DEFAULT_CONFIG,
) -> None:
    """Run the transcript viewer TUI."""
    app = TranscriptViewer(transcript_path, limit=limit, config=config)
    try:
        app.run()
    except KeyboardInterrupt:
        # Textual handles terminal cleanup automatically
        print("\nInterrupted")
