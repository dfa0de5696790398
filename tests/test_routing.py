from __future__ import annotations

import pytest

from contoso_university.web.controllers import Controller, ControllerRegistry, action, http_post
from contoso_university.web.routing import RouteTable, RouteTemplate

DEFAULT = "{controller=Home}/{action=Index}/{id?}"


class HomeController(Controller):
    @action()
    async def index(self):
        raise NotImplementedError

    @action()
    async def about(self):
        raise NotImplementedError


class StudentsController(Controller):
    @action()
    async def index(self):
        raise NotImplementedError

    @action()
    async def edit(self, id=None):
        raise NotImplementedError

    @http_post("Edit")
    async def edit_post(self, id=None):
        raise NotImplementedError


@pytest.fixture
def table() -> RouteTable:
    t = RouteTable(ControllerRegistry([HomeController, StudentsController]))
    t.map("default", DEFAULT)
    return t


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/", {"controller": "Home", "action": "Index"}),
        ("/Students", {"controller": "Students", "action": "Index"}),
        ("/Students/Edit/5", {"controller": "Students", "action": "Edit", "id": "5"}),
        ("/students/edit/5/", {"controller": "students", "action": "edit", "id": "5"}),
    ],
)
def test_template_match(path, expected):
    assert RouteTemplate.parse(DEFAULT).match(path) == expected


def test_template_rejects_extra_segments():
    assert RouteTemplate.parse(DEFAULT).match("/a/b/c/d") is None


@pytest.mark.parametrize(
    "template",
    ["{controller}/{controller}", "{id?}/{action}", "{bad segment}", "a//b"],
)
def test_invalid_templates(template):
    with pytest.raises(ValueError):
        RouteTemplate.parse(template)


def test_map_requires_controller_and_action():
    t = RouteTable(ControllerRegistry([HomeController]))
    with pytest.raises(ValueError):
        t.map("bad", "{controller}/{id?}")


def test_resolve_selects_action_by_method(table):
    get = table.resolve("GET", "/Students/Edit/3")
    post = table.resolve("POST", "/Students/Edit/3")

    assert get.endpoint.method_name == "edit"
    assert post.endpoint.method_name == "edit_post"
    assert post.route_values["id"] == "3"


def test_resolve_head_falls_back_to_get(table):
    assert table.resolve("HEAD", "/Home/About").endpoint.action == "About"


def test_resolve_flags_wrong_method(table):
    match = table.resolve("POST", "/Home/About")
    assert match.endpoint is None
    assert match.method_not_allowed


def test_resolve_unknown_action(table):
    match = table.resolve("GET", "/Students/Missing")
    assert match.endpoint is None
    assert not match.method_not_allowed


def test_url_for_drops_default_segments(table):
    assert table.url_for("Index", "Home") == "/"
    assert table.url_for("Index", "Students") == "/Students"
    assert table.url_for("About", "Home") == "/Home/About"
    assert table.url_for("Edit", "Students", id=7) == "/Students/Edit/7"


def test_url_for_puts_extra_values_in_query(table):
    url = table.url_for("Index", "Students", sort_order="name_desc", search_string=None)
    assert url == "/Students?sort_order=name_desc"


def test_url_for_without_routes():
    t = RouteTable(ControllerRegistry([HomeController]))
    with pytest.raises(LookupError):
        t.url_for("Index", "Home")


def test_registry_rejects_ambiguous_actions():
    class TwiceController(Controller):
        @action("Same")
        async def one(self):
            raise NotImplementedError

        @action("Same")
        async def two(self):
            raise NotImplementedError

    with pytest.raises(ValueError, match="Ambiguous"):
        ControllerRegistry([TwiceController])


def test_registry_rejects_controller_without_actions():
    class EmptyController(Controller):
        pass

    with pytest.raises(ValueError):
        ControllerRegistry([EmptyController])
