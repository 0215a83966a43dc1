"""Selection cascade controller.

Coordinates the five dependent catalog lookups (organizations, projects,
APIs, versions, document). Selecting an item at one level records the
selection, empties every level below it and fetches the next level.

Each level carries a generation counter. Resetting a level or starting a
fetch for it bumps the counter, and a response is only applied when the
counter still has the value the fetch started with. A late response for an
invalidated level is dropped.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Awaitable, Callable, Optional

from apiatlas.client import FETCH_ERRORS, CatalogClient
from apiatlas.log import get_logger


logger = get_logger(__name__)


class LevelName(IntEnum):
    """Cascade levels, in dependency order."""

    ORGANIZATIONS = 0
    PROJECTS = 1
    APIS = 2
    VERSIONS = 3
    DOCUMENT = 4


# Fixed user-facing message per failing level
ERROR_MESSAGES: dict[LevelName, str] = {
    LevelName.ORGANIZATIONS: "Failed to fetch organizations.",
    LevelName.PROJECTS: "Failed to fetch projects.",
    LevelName.APIS: "Failed to fetch APIs.",
    LevelName.VERSIONS: "Failed to fetch API versions.",
    LevelName.DOCUMENT: "Failed to fetch YAML definition.",
}


@dataclass
class Level:
    """Remote-backed list state for one cascade level."""

    name: LevelName
    items: list = field(default_factory=list)
    selected: Optional[str] = None
    loading: bool = False
    generation: int = 0
    document: Optional[str] = None  # Only used by the DOCUMENT level

    def reset(self) -> None:
        """Drop all data and invalidate any in-flight fetch."""
        self.items = []
        self.selected = None
        self.loading = False
        self.document = None
        self.generation += 1

    def begin_fetch(self) -> int:
        """Reset and mark loading. Returns the generation of the new fetch."""
        self.reset()
        self.loading = True
        return self.generation


@dataclass
class CascadeState:
    """Five cascade levels plus one shared error slot."""

    levels: list[Level] = field(
        default_factory=lambda: [Level(name) for name in LevelName]
    )
    error: Optional[str] = None

    def __getitem__(self, name: LevelName) -> Level:
        return self.levels[name]

    def reset_from(self, name: LevelName) -> None:
        """Reset ``name`` and every level below it."""
        for level in self.levels[name:]:
            level.reset()


StateListener = Callable[[CascadeState], None]


class SelectionCascade:
    """Owns the cascade state for one UI session.

    Operations never raise fetch failures. A failure leaves the fetched level
    empty and stores a fixed message in ``state.error``.
    """

    def __init__(
        self,
        client: CatalogClient,
        on_change: Optional[StateListener] = None,
    ) -> None:
        self.client = client
        self.state = CascadeState()
        self._listeners: list[StateListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    def subscribe(self, listener: StateListener) -> None:
        """Register a callback invoked after every state transition."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.state)

    def level(self, name: LevelName) -> Level:
        return self.state[name]

    @property
    def organizations(self) -> list:
        return self.state[LevelName.ORGANIZATIONS].items

    @property
    def projects(self) -> list:
        return self.state[LevelName.PROJECTS].items

    @property
    def apis(self) -> list:
        return self.state[LevelName.APIS].items

    @property
    def versions(self) -> list:
        return self.state[LevelName.VERSIONS].items

    @property
    def document(self) -> Optional[str]:
        return self.state[LevelName.DOCUMENT].document

    @property
    def error(self) -> Optional[str]:
        return self.state.error

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load_organizations(self) -> None:
        """Reset the whole cascade and fetch the organization list."""
        await self._fetch(
            LevelName.ORGANIZATIONS,
            None,
            self.client.list_organizations,
        )

    async def select_organization(self, org: str) -> None:
        """Select an organization and fetch its projects."""
        await self._fetch(
            LevelName.PROJECTS,
            org,
            lambda: self.client.list_projects(org),
        )

    async def select_project(self, org: str, project: str) -> None:
        """Select a project and fetch the APIs it contains."""
        await self._fetch(
            LevelName.APIS,
            project,
            lambda: self.client.list_apis(org, project),
        )

    async def select_api(self, org: str, api: str) -> None:
        """Select an API and fetch its versions."""
        await self._fetch(
            LevelName.VERSIONS,
            api,
            lambda: self.client.list_versions(org, api),
        )

    async def select_version(self, org: str, api: str, version: str) -> None:
        """Select a version and fetch its specification document."""
        await self._fetch(
            LevelName.DOCUMENT,
            version,
            lambda: self.client.get_document(org, api, version),
        )

    async def _fetch(
        self,
        target: LevelName,
        selection: Optional[str],
        fetch: Callable[[], Awaitable[Any]],
    ) -> None:
        """Record ``selection`` on the parent level, then fetch ``target``.

        Everything up to the await runs without yielding to the event loop,
        so observers never see a half-reset cascade.
        """
        state = self.state
        if target > LevelName.ORGANIZATIONS:
            state[LevelName(target - 1)].selected = selection
        if target < LevelName.DOCUMENT:
            state.reset_from(LevelName(target + 1))
        level = state[target]
        generation = level.begin_fetch()
        state.error = None
        log = logger.bind(level=target.name.lower(), generation=generation)
        log.info("cascade.fetch_started", selection=selection)
        self._notify()

        try:
            result = await fetch()
        except FETCH_ERRORS as e:
            if level.generation != generation:
                log.debug("cascade.stale_failure_dropped", error=str(e))
                return
            log.warning("cascade.fetch_failed", error=str(e))
            state.error = ERROR_MESSAGES[target]
        else:
            if level.generation != generation:
                log.debug("cascade.stale_response_dropped")
                return
            if target == LevelName.DOCUMENT:
                level.document = result
                log.info("cascade.fetch_succeeded", size=len(result))
            else:
                level.items = list(result or [])
                log.info("cascade.fetch_succeeded", count=len(level.items))
        finally:
            # A newer fetch owns the flag once the generation has moved on
            if level.generation == generation:
                level.loading = False
                self._notify()
