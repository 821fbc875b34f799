import pytest

from auwlac.code_generation import build_route, default_route
from auwlac.parser.classes import PageMetadata


@pytest.mark.parametrize(
    "component_name, file_path, expected",
    [
        pytest.param("Home", None, "/", id="home_component"),
        pytest.param("IndexPage", None, "/", id="index_page_component"),
        pytest.param("AboutPage", None, "/about", id="page_suffix_dropped"),
        pytest.param("UserProfilePage", None, "/user-profile", id="kebab_case"),
        pytest.param("HTMLViewer", None, "/html-viewer", id="acronym"),
        pytest.param(None, "pages/index.tsx", "/", id="index_file"),
        pytest.param(None, "pages/user-settings.page.tsx", "/user-settings", id="file_stem"),
        pytest.param("Page", None, "/page", id="bare_suffix_is_kept"),
    ],
)
def test_default_route(component_name, file_path, expected):
    assert default_route(component_name, file_path) == expected


def test_build_route_uses_explicit_path_and_metadata():
    metadata = PageMetadata(is_page=True, route_path="/team", title="Team", guard="requireAuth")
    route = build_route(metadata, "TeamPage", "pages/TeamPage.tsx")
    assert route.path == "/team"
    assert route.component == "TeamPage"
    assert route.title == "Team"
    assert route.guard == "requireAuth"
    assert route.description is None
    assert route.source_file == "pages/TeamPage.tsx"


def test_build_route_falls_back_to_default_path():
    route = build_route(PageMetadata(is_page=True), "ContactPage")
    assert route.path == "/contact"


def test_build_route_is_none_for_non_pages():
    assert build_route(PageMetadata(), "Widget") is None
