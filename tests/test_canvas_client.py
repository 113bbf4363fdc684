import json

import httpx
import pytest

from apps.canvas.client import PER_PAGE, CanvasClient, CanvasConfig


def _client(handler) -> CanvasClient:
    transport = httpx.MockTransport(handler)
    http_client = httpx.Client(transport=transport, base_url="https://canvas.test")
    return CanvasClient(
        CanvasConfig(base_url="https://canvas.test", api_token="secret-token"),
        client=http_client,
    )


def test_list_modules_follows_link_pagination() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json=[{"id": 2, "name": "Session 02", "items_count": 4}])
        next_url = "https://canvas.test/api/v1/courses/7/modules?page=2&per_page=100"
        return httpx.Response(
            200,
            json=[{"id": 1, "name": "Session 01"}],
            headers={"Link": f'<{next_url}>; rel="next"'},
        )

    modules = _client(handler).list_modules(7, "  Session ")

    assert [(module.id, module.name) for module in modules] == [(1, "Session 01"), (2, "Session 02")]
    assert len(requests) == 2
    first = requests[0]
    assert first.url.path == "/api/v1/courses/7/modules"
    assert first.url.params["per_page"] == str(PER_PAGE)
    assert first.url.params["search_term"] == "Session"
    assert first.headers["authorization"] == "Bearer secret-token"
    assert "search_term" not in requests[1].url.params
    assert requests[1].headers["authorization"] == "Bearer secret-token"


def test_list_module_items_parses_optional_fields() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/courses/7/modules/11/items"
        return httpx.Response(
            200,
            json=[
                {"id": 1, "title": "Teachers Notes", "type": "SubHeader", "position": 1},
                {"id": 2, "title": None, "type": "Page", "position": 2, "page_url": "intro", "indent": 0},
            ],
        )

    items = _client(handler).list_module_items(7, 11)

    assert items[0].is_subheader and items[0].page_url is None
    assert items[1].is_page and items[1].title == "" and items[1].page_url == "intro"


def test_create_module_items_post_expected_payloads() -> None:
    captured: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        captured.append({"method": request.method, "path": request.url.path, "payload": payload})
        item = payload["module_item"]
        return httpx.Response(
            200,
            json={"id": 50, "title": item.get("title", "Teacher Notes"), "type": item.get("type", "Page"), "position": 2},
        )

    client = _client(handler)
    header = client.create_module_subheader(7, 11, "Session 01: Task A")
    page_item = client.create_module_page_item(7, 11, page_url="teacher-notes", position=2, title="Teacher Notes")
    client.update_module_item_position(7, 11, 50, 2)

    assert header.is_subheader
    assert page_item.is_page
    assert captured == [
        {
            "method": "POST",
            "path": "/api/v1/courses/7/modules/11/items",
            "payload": {"module_item": {"title": "Session 01: Task A", "type": "SubHeader"}},
        },
        {
            "method": "POST",
            "path": "/api/v1/courses/7/modules/11/items",
            "payload": {
                "module_item": {
                    "type": "Page",
                    "page_url": "teacher-notes",
                    "position": 2,
                    "title": "Teacher Notes",
                }
            },
        },
        {
            "method": "PUT",
            "path": "/api/v1/courses/7/modules/11/items/50",
            "payload": {"module_item": {"position": 2}},
        },
    ]


def test_page_requests_use_wiki_page_envelope() -> None:
    captured: list[tuple[str, str, dict | None]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        captured.append((request.method, request.url.path, body))
        if request.method == "GET":
            return httpx.Response(200, json={"url": "intro", "title": "Intro", "body": "<p>Hi</p>", "published": True})
        wiki = body["wiki_page"]
        return httpx.Response(200, json={"url": "teacher-notes", "title": wiki.get("title", "Teacher Notes")})

    client = _client(handler)
    page = client.get_page(7, "intro")
    created = client.create_page(7, title="Teacher Notes", body="<h2>x</h2>", published=True)
    client.update_page(7, "teacher-notes", body="<h2>y</h2>")

    assert page.body == "<p>Hi</p>"
    assert created.url == "teacher-notes"
    assert captured[1] == (
        "POST",
        "/api/v1/courses/7/pages",
        {"wiki_page": {"title": "Teacher Notes", "body": "<h2>x</h2>", "published": True}},
    )
    assert captured[2] == ("PUT", "/api/v1/courses/7/pages/teacher-notes", {"wiki_page": {"body": "<h2>y</h2>"}})


def test_list_pages_omits_blank_search_term() -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json=[{"url": "a", "title": "A"}, "not-a-row"])

    pages = _client(handler).list_pages(7, "   ")

    assert [page.url for page in pages] == ["a"]
    assert "search_term" not in seen[0].params


def test_error_status_raises_http_status_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"errors": [{"message": "not found"}]})

    client = _client(handler)
    with pytest.raises(httpx.HTTPStatusError):
        client.get_page(7, "missing")
    with pytest.raises(httpx.HTTPStatusError):
        client.list_modules(7)


def test_non_json_payload_raises_runtime_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client = _client(handler)
    with pytest.raises(RuntimeError, match="non-JSON payload for GET"):
        client.get_page(7, "intro")
    with pytest.raises(RuntimeError, match="non-JSON payload for GET"):
        client.list_modules(7)


def test_close_leaves_injected_client_open() -> None:
    http_client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])))
    client = CanvasClient(CanvasConfig(base_url="https://canvas.test", api_token="t"), client=http_client)

    client.close()

    assert not http_client.is_closed
    http_client.close()
