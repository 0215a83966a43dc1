"""Tests for API Atlas TUI application."""

import pytest
import respx
from httpx import Response
from textual.widgets import ListView, Static

from apiatlas.cascade import LevelName
from apiatlas.client import CatalogClient
from apiatlas.config import AtlasConfig, ViewState

from conftest import BASE_URL


class TestTUIModule:
    """Tests for TUI module imports."""

    def test_import_atlas_app(self) -> None:
        """Test AtlasApp can be imported."""
        from apiatlas.tui import AtlasApp
        assert AtlasApp is not None

    def test_app_class_attributes(self) -> None:
        """Test AtlasApp has required attributes."""
        from apiatlas.tui import AtlasApp
        assert hasattr(AtlasApp, "TITLE")
        assert hasattr(AtlasApp, "BINDINGS")
        assert hasattr(AtlasApp, "CSS")

    def test_app_bindings(self) -> None:
        """Test AtlasApp has expected key bindings."""
        from apiatlas.tui import AtlasApp
        binding_keys = [b.key for b in AtlasApp.BINDINGS]
        assert "q" in binding_keys  # Quit
        assert "r" in binding_keys  # Refresh
        assert "e" in binding_keys  # Export


class TestItemKey:
    """Tests for list row keys."""

    def test_keys_per_level(self) -> None:
        """Test each level's items map to their selection key."""
        from apiatlas.models import ApiVersion, Organization, Project
        from apiatlas.tui.app import item_key

        assert item_key(LevelName.ORGANIZATIONS, Organization(id="1", name="acme")) == "acme"
        assert item_key(LevelName.PROJECTS, Project(name="payments")) == "payments"
        assert item_key(LevelName.APIS, "billing") == "billing"
        assert item_key(LevelName.VERSIONS, ApiVersion(value="1.0.0")) == "1.0.0"

    def test_unversioned_item_has_no_key(self) -> None:
        """Test a missing version cannot be selected."""
        from apiatlas.tui.app import item_key
        assert item_key(LevelName.VERSIONS, None) is None


async def settle(app, pilot) -> None:
    """Let pending messages and cascade workers finish."""
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


async def select_row(app, pilot, list_id: str, index: int = 0) -> None:
    list_view = app.query_one(f"#{list_id}", ListView)
    list_view.index = index
    list_view.action_select_cursor()
    await settle(app, pilot)


class TestTUIDrillDown:
    """Pilot-driven tests of the dashboard."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_drill_down_to_document(self, org_payload) -> None:
        """Test selecting one row per level ends with the document shown."""
        from apiatlas.tui import AtlasApp

        respx.get(f"{BASE_URL}/user-management/v1/orgs").mock(
            return_value=Response(200, json=org_payload)
        )
        respx.get(f"{BASE_URL}/projects/acme").mock(
            return_value=Response(200, json={"projects": [{"name": "payments"}]})
        )
        respx.get(f"{BASE_URL}/projects/acme/payments").mock(
            return_value=Response(200, json={"apis": ["billing"]})
        )
        respx.get(f"{BASE_URL}/apis/acme/billing").mock(
            return_value=Response(
                200,
                json={"apis": [{"properties": [{"type": "X-Version", "value": "1.0.0"}]}]},
            )
        )
        respx.get(f"{BASE_URL}/apis/acme/billing/1.0.0/swagger.yaml").mock(
            return_value=Response(200, text="openapi: 3.0.0\n")
        )

        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=AtlasConfig())
        async with app.run_test(size=(120, 40)) as pilot:
            await settle(app, pilot)

            assert len(app.query_one("#list-orgs", ListView).children) == 1
            assert not app.query_one("#section-projects").display
            assert not app.query_one("#document-section").display

            await select_row(app, pilot, "list-orgs")
            assert app.cascade.level(LevelName.ORGANIZATIONS).selected == "acme"
            assert app.query_one("#section-projects").display
            assert not app.query_one("#section-apis").display

            await select_row(app, pilot, "list-projects")
            await select_row(app, pilot, "list-apis")
            await select_row(app, pilot, "list-versions")

            assert app.query_one("#document-section").display
            assert app.cascade.document == "openapi: 3.0.0\n"
            assert app.cascade.error is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_is_displayed(self) -> None:
        """Test a failed organization fetch shows the error text."""
        from apiatlas.tui import AtlasApp

        respx.get(f"{BASE_URL}/user-management/v1/orgs").mock(
            return_value=Response(500)
        )

        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=AtlasConfig())
        async with app.run_test(size=(120, 40)) as pilot:
            await settle(app, pilot)

            error = app.query_one("#error-text", Static)
            assert error.display
            assert app.cascade.error == "Failed to fetch organizations."
            assert len(app.query_one("#list-orgs", ListView).children) == 0

    @respx.mock
    @pytest.mark.asyncio
    async def test_refresh_reloads_organizations(self, org_payload) -> None:
        """Test the refresh binding fetches organizations again."""
        from apiatlas.tui import AtlasApp

        route = respx.get(f"{BASE_URL}/user-management/v1/orgs").mock(
            return_value=Response(200, json=org_payload)
        )

        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=AtlasConfig())
        async with app.run_test(size=(120, 40)) as pilot:
            await settle(app, pilot)
            await pilot.press("r")
            await settle(app, pilot)

        assert route.call_count == 2


class TestViewState:
    """Tests for remembering the drill-down path between launches."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_last_organization_is_reselected(self, org_payload) -> None:
        """Test the organization open at the last quit is selected on mount."""
        from apiatlas.tui import AtlasApp

        respx.get(f"{BASE_URL}/user-management/v1/orgs").mock(
            return_value=Response(200, json=org_payload)
        )
        projects = respx.get(f"{BASE_URL}/projects/acme").mock(
            return_value=Response(200, json={"projects": [{"name": "payments"}]})
        )

        config = AtlasConfig(view_state=ViewState(last_org="acme", last_project="payments"))
        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=config)
        async with app.run_test(size=(120, 40)) as pilot:
            await settle(app, pilot)

            assert projects.called
            assert app.cascade.level(LevelName.ORGANIZATIONS).selected == "acme"
            assert [p.name for p in app.cascade.projects] == ["payments"]
            assert app.query_one("#section-projects").display

    @respx.mock
    @pytest.mark.asyncio
    async def test_missing_organization_is_not_selected(self, org_payload) -> None:
        """Test a remembered organization that no longer exists is ignored."""
        from apiatlas.tui import AtlasApp

        respx.get(f"{BASE_URL}/user-management/v1/orgs").mock(
            return_value=Response(200, json=org_payload)
        )

        config = AtlasConfig(view_state=ViewState(last_org="globex"))
        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=config)
        async with app.run_test(size=(120, 40)) as pilot:
            await settle(app, pilot)

            assert app.cascade.level(LevelName.ORGANIZATIONS).selected is None
            assert not app.query_one("#section-projects").display

    @respx.mock
    @pytest.mark.asyncio
    async def test_quit_saves_path(self, org_payload) -> None:
        """Test quitting stores the selected organization in the config file."""
        from apiatlas.tui import AtlasApp

        respx.get(f"{BASE_URL}/user-management/v1/orgs").mock(
            return_value=Response(200, json=org_payload)
        )
        respx.get(f"{BASE_URL}/projects/acme").mock(
            return_value=Response(200, json={"projects": []})
        )

        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=AtlasConfig())
        async with app.run_test(size=(120, 40)) as pilot:
            await settle(app, pilot)
            await select_row(app, pilot, "list-orgs")
            await pilot.press("q")

        assert AtlasConfig.load().view_state == ViewState(last_org="acme")


class TestTheme:
    """Tests for the configured theme."""

    def test_unknown_theme_falls_back(self) -> None:
        """Test an unknown theme name does not stop the app from starting."""
        from apiatlas.tui import AtlasApp

        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=AtlasConfig(theme="nope"))
        assert app.theme == "textual-dark"

    def test_configured_theme_is_used(self) -> None:
        """Test a built-in theme from the config is applied."""
        from apiatlas.tui import AtlasApp

        app = AtlasApp(client=CatalogClient(base_url=BASE_URL), config=AtlasConfig(theme="nord"))
        assert app.theme == "nord"
