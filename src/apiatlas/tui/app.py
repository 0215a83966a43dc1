"""Main API Atlas TUI application."""

from pathlib import Path
from typing import Optional

from rich.syntax import Syntax
from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Footer, Header, Label, ListItem, ListView, Static

from apiatlas.cascade import CascadeState, LevelName, SelectionCascade
from apiatlas.client import CatalogClient
from apiatlas.config import DEFAULT_THEME, AtlasConfig
from apiatlas.export import default_filename, export_document
from apiatlas.log import get_logger


logger = get_logger(__name__)

# List widgets, one per browsable level
LIST_IDS: dict[LevelName, str] = {
    LevelName.ORGANIZATIONS: "list-orgs",
    LevelName.PROJECTS: "list-projects",
    LevelName.APIS: "list-apis",
    LevelName.VERSIONS: "list-versions",
}
LEVEL_BY_LIST_ID = {list_id: name for name, list_id in LIST_IDS.items()}

SECTION_TITLES: dict[LevelName, str] = {
    LevelName.ORGANIZATIONS: "Organizations",
    LevelName.PROJECTS: "Projects",
    LevelName.APIS: "APIs",
    LevelName.VERSIONS: "API Versions",
    LevelName.DOCUMENT: "YAML Definition",
}

LOADING_TEXT: dict[LevelName, str] = {
    LevelName.ORGANIZATIONS: "Loading organizations...",
    LevelName.PROJECTS: "Loading projects...",
    LevelName.APIS: "Loading APIs...",
    LevelName.VERSIONS: "Loading versions...",
    LevelName.DOCUMENT: "Loading YAML definition...",
}

UNVERSIONED_LABEL = "(unversioned)"


def item_key(level: LevelName, item) -> Optional[str]:
    """Selection key of a fetched item; None when it cannot be selected."""
    if item is None:
        return None
    if level == LevelName.APIS:
        return item
    if level == LevelName.VERSIONS:
        return item.value
    return item.name


class CatalogListItem(ListItem):
    """List row carrying the selection key of a catalog entry."""

    def __init__(self, key: Optional[str], label: str) -> None:
        super().__init__(Label(label), disabled=key is None)
        self.key = key


class LevelSection(Vertical):
    """Title, loading indicator and list for one cascade level."""

    def __init__(self, level: LevelName, **kwargs) -> None:
        super().__init__(**kwargs)
        self.level = level

    def compose(self) -> ComposeResult:
        yield Label(SECTION_TITLES[self.level], classes="section-title")
        yield Label(LOADING_TEXT[self.level], classes="loading")
        yield ListView(id=LIST_IDS[self.level])


class AtlasApp(App):
    """Drill-down explorer: organizations, projects, APIs, versions, document."""

    TITLE = "API Atlas"
    SUB_TITLE = "API Catalog Explorer"

    CSS = """
    Screen {
        layout: vertical;
    }

    #error-text {
        color: $error;
        text-style: bold;
        padding: 0 1;
        height: auto;
    }

    #breadcrumb {
        padding: 0 1;
        color: $text-muted;
        height: 1;
    }

    #columns {
        height: 1fr;
    }

    LevelSection {
        width: 1fr;
        border: solid $primary;
        padding: 0 1;
    }

    .section-title {
        text-style: bold;
        width: 100%;
        background: $primary-darken-2;
    }

    .loading {
        color: $text-muted;
        text-style: italic;
    }

    #document-section {
        height: 2fr;
        border: solid $secondary;
    }

    #document-scroll {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("e", "export", "Export"),
    ]

    def __init__(
        self,
        client: Optional[CatalogClient] = None,
        config: Optional[AtlasConfig] = None,
    ):
        super().__init__()
        self._config = config or AtlasConfig.load()
        self.client = client or CatalogClient(
            token=self._config.token,
            base_url=self._config.base_url,
        )
        self.cascade = SelectionCascade(self.client, on_change=self.render_state)
        theme = self._config.theme
        if theme not in self.available_themes:
            logger.warning("config.unknown_theme", theme=theme)
            theme = DEFAULT_THEME
        self.theme = theme
        # Last rendered (generation, loading, item count) per list level
        self._rendered: dict[LevelName, tuple] = {}
        self._ui_ready = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="error-text")
        yield Label("", id="breadcrumb")
        with Horizontal(id="columns"):
            for level in LIST_IDS:
                yield LevelSection(level, id=f"section-{level.name.lower()}")
        with Vertical(id="document-section"):
            yield Label(SECTION_TITLES[LevelName.DOCUMENT], classes="section-title")
            yield Label(LOADING_TEXT[LevelName.DOCUMENT], id="document-loading", classes="loading")
            with VerticalScroll(id="document-scroll"):
                yield Static("", id="document-view")
        yield Footer()

    def on_mount(self) -> None:
        self._ui_ready = True
        self.render_state(self.cascade.state)
        self.restore_view_state()

    async def on_unmount(self) -> None:
        await self.client.aclose()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_state(self, state: CascadeState) -> None:
        """Redraw every section from the cascade state."""
        if not self._ui_ready:
            return

        error = self.query_one("#error-text", Static)
        error.update(state.error or "")
        error.display = state.error is not None

        for level_name, list_id in LIST_IDS.items():
            level = state[level_name]
            section = self.query_one(f"#section-{level_name.name.lower()}", LevelSection)
            # A section appears once its parent level has a selection
            section.display = (
                level_name == LevelName.ORGANIZATIONS
                or state[LevelName(level_name - 1)].selected is not None
            )
            section.query_one(".loading", Label).display = level.loading

            list_view = section.query_one(f"#{list_id}", ListView)
            list_view.display = not level.loading
            signature = (level.generation, level.loading, len(level.items))
            if self._rendered.get(level_name) != signature:
                self._rendered[level_name] = signature
                list_view.clear()
                list_view.extend(
                    CatalogListItem(
                        item_key(level_name, item),
                        item_key(level_name, item) or UNVERSIONED_LABEL,
                    )
                    for item in level.items
                )

        document_level = state[LevelName.DOCUMENT]
        self.query_one("#document-section").display = (
            state[LevelName.VERSIONS].selected is not None
        )
        self.query_one("#document-loading", Label).display = document_level.loading
        view = self.query_one("#document-view", Static)
        if document_level.document:
            view.update(Syntax(document_level.document, "yaml", line_numbers=True, word_wrap=True))
        else:
            view.update("")

        path = [state[name].selected for name in LevelName if state[name].selected]
        self.query_one("#breadcrumb", Label).update(" / ".join(path))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @work(group="cascade")
    async def run_cascade(self, level: LevelName, key: Optional[str]) -> None:
        """Run the cascade operation that fetches ``level``."""
        state = self.cascade.state
        org = state[LevelName.ORGANIZATIONS].selected
        if level == LevelName.ORGANIZATIONS:
            await self.cascade.load_organizations()
        elif level == LevelName.PROJECTS:
            await self.cascade.select_organization(key)
        elif level == LevelName.APIS:
            await self.cascade.select_project(org, key)
        elif level == LevelName.VERSIONS:
            await self.cascade.select_api(org, key)
        else:
            await self.cascade.select_version(org, state[LevelName.APIS].selected, key)

    @work(group="cascade")
    async def restore_view_state(self) -> None:
        """Load organizations and re-select the one open at the last quit."""
        await self.cascade.load_organizations()
        view_state = self._config.view_state
        last_org = view_state.last_org if view_state else None
        if last_org is None:
            return
        names = [org.name for org in self.cascade.organizations]
        if last_org not in names:
            logger.info("view_state.org_missing", org=last_org)
            return
        await self.cascade.select_organization(last_org)

    @on(ListView.Selected)
    def on_catalog_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if not isinstance(item, CatalogListItem) or item.key is None:
            return
        level = LEVEL_BY_LIST_ID.get(event.list_view.id or "")
        if level is None:
            return
        # Selecting at level N fetches level N + 1
        self.run_cascade(LevelName(level + 1), item.key)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_refresh(self) -> None:
        self.run_cascade(LevelName.ORGANIZATIONS, None)
        self.notify("Refreshing organizations...")

    def action_export(self) -> None:
        state = self.cascade.state
        document = self.cascade.document
        if not document:
            self.notify("No specification loaded", severity="warning")
            return

        export_format = self._config.export_format
        api = state[LevelName.APIS].selected or "api"
        version = state[LevelName.VERSIONS].selected or "latest"
        output = Path(default_filename(api, version, export_format))
        try:
            export_document(document, output, export_format)
        except (OSError, ValueError) as e:
            logger.warning("export.failed", path=str(output), error=str(e))
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Saved {output}")

    def action_quit(self) -> None:
        self._save_view_state()
        self.exit()

    def _save_view_state(self) -> None:
        """Remember the drill-down path for the next launch."""
        state = self.cascade.state
        try:
            self._config.save_view_state(
                last_org=state[LevelName.ORGANIZATIONS].selected,
                last_project=state[LevelName.PROJECTS].selected,
                last_api=state[LevelName.APIS].selected,
                last_version=state[LevelName.VERSIONS].selected,
            )
        except OSError as e:
            logger.warning("config.save_failed", error=str(e))
