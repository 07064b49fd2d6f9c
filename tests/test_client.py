"""AdminClient request handling and the response cache."""

from unittest.mock import MagicMock

import pytest

from contentdesk.client import AdminClient, ApiError, AuthenticationError, ResponseCache


def _response(status=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 400
    response.json.return_value = payload if payload is not None else {}
    response.text = text
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def api(session):
    return AdminClient("http://api.test/", token="tok", session=session)


def test_token_sets_bearer_header(api, session):
    assert session.headers["Authorization"] == "Bearer tok"


def test_reads_are_cached_by_path_and_params(api, session):
    session.request.return_value = _response(payload={"success": True, "data": {"items": [1]}})

    assert api.blogs.list(page=1, status="draft") == {"items": [1]}
    assert api.blogs.list(status="draft", page=1) == {"items": [1]}
    assert session.request.call_count == 1

    api.blogs.list(page=2, status="draft")
    assert session.request.call_count == 2
    method, url = session.request.call_args.args
    assert (method, url) == ("GET", "http://api.test/api/blogposts")


def test_mutation_invalidates_only_its_resource(api, session):
    session.request.return_value = _response(payload={"success": True, "data": {"items": []}})
    api.blogs.list()
    api.tags.list()
    assert session.request.call_count == 2

    session.request.return_value = _response(201, {"success": True, "data": {"blog": {"id": 1}}})
    assert api.blogs.create({"title": "T"}) == {"blog": {"id": 1}}

    session.request.return_value = _response(payload={"success": True, "data": {"items": []}})
    api.tags.list()
    assert session.request.call_count == 3
    api.blogs.list()
    assert session.request.call_count == 4


def test_mutation_invalidates_dependent_resources(api, session):
    session.request.return_value = _response(payload={"success": True, "data": {"total": 1}})
    api.analytics_overview("7d")
    api.analytics_activity("7d")
    api.blogs.list()
    api.projects.list()
    assert session.request.call_count == 4

    session.request.return_value = _response(payload={"success": True, "data": {"result": {"affected": 1}}})
    api.newsletter.bulk("unsubscribe", ["a@example.com"])
    api.tags.update(1, {"name": "Python"})
    assert session.request.call_count == 6

    session.request.return_value = _response(payload={"success": True, "data": {"total": 0}})
    api.analytics_overview("7d")
    api.analytics_activity("7d")
    api.blogs.list()
    assert session.request.call_count == 9
    # projects only embed services
    api.projects.list()
    assert session.request.call_count == 9


def test_failed_mutation_keeps_cache(api, session):
    session.request.return_value = _response(payload={"success": True, "data": {"items": []}})
    api.messages.list()

    session.request.return_value = _response(400, {"success": False, "message": "Invalid bulk action"})
    with pytest.raises(ApiError) as exc:
        api.messages.bulk("explode", [1])
    assert exc.value.message == "Invalid bulk action"
    assert exc.value.status_code == 400

    api.messages.list()
    assert session.request.call_count == 2


def test_unauthorized_clears_token(api, session):
    session.request.return_value = _response(401, {"success": False, "message": "Token has expired"})
    with pytest.raises(AuthenticationError):
        api.newsletter.stats()
    assert api.token is None
    assert "Authorization" not in session.headers


def test_export_csv_returns_text(api, session):
    session.request.return_value = _response(text='"Email"\n"a@example.com"\n')
    assert api.newsletter.export().startswith('"Email"')
    assert session.request.call_args.kwargs["params"] == {"format": "csv"}


def test_send_campaign_posts_form(api, session):
    session.request.return_value = _response(payload={"success": True, "data": {"successful_sends": 2}})
    result = api.newsletter.send_campaign("Hi", html_file=("c.html", b"<p>x</p>"),
                                          selected_subscribers="selected", selected_ids=[1, 2])
    assert result == {"successful_sends": 2}
    kwargs = session.request.call_args.kwargs
    assert kwargs["data"]["selected_ids"] == "[1, 2]"
    assert kwargs["files"]["html_file"][0] == "c.html"


def test_cache_expires():
    now = [0.0]
    cache = ResponseCache(ttl=10, clock=lambda: now[0])
    key = ResponseCache.make_key("blogs", "/blogposts", {"b": 2, "a": 1})
    assert key == ResponseCache.make_key("blogs", "/blogposts", {"a": 1, "b": 2})

    cache.set(key, {"x": 1})
    assert cache.get(key) == {"x": 1}
    now[0] = 10.0
    assert cache.get(key) is None
    assert len(cache) == 0
