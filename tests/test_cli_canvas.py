from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from apps.canvas.client import CanvasClient
from nexgen.cli.canvas import app
from tests.mocks.canvas_api import CanvasAPIMock

RUNNER = CliRunner()


@pytest.fixture
def canvas_api(monkeypatch: pytest.MonkeyPatch):
    api = CanvasAPIMock()
    monkeypatch.setenv("CANVAS_BASE_URL", api.base_url)
    monkeypatch.setenv("CANVAS_API_TOKEN", api.token)
    monkeypatch.setenv("CANVAS_TEST_COURSE_ID", "42")
    with api.patch_canvas_client():
        yield api
    api.close()


def _seed(api: CanvasAPIMock) -> int:
    module_id = api.add_module("Session 03")
    api.add_item(module_id, "Teachers Notes", "SubHeader")
    api.add_page_item(module_id, "Teacher Notes", "<p>Old notes.</p>")
    api.add_item(module_id, "Session 03: Task A", "SubHeader")
    api.add_page_item(module_id, "Wiring", "<p>Follow the wiring diagram and connect the LCD carefully.</p>")
    api.add_page_item(module_id, "Keypad", "<p>Read each key press from the keypad in Serial Monitor.</p>")
    return module_id


def test_teacher_notes_dry_run_previews_without_writes(canvas_api: CanvasAPIMock) -> None:
    module_id = _seed(canvas_api)

    result = RUNNER.invoke(app, ["teacher-notes", "--session-name", "Session 03", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Course: 42" in result.output
    assert f"Session module: Session 03 ({module_id})" in result.output
    assert "Mode: live" in result.output
    assert "Source pages: 2" in result.output
    assert "Teacher notes title: Teacher Notes" in result.output
    assert "Target module position: 2" in result.output
    assert "Dry run: no Canvas updates performed." in result.output
    assert "<h2>Teacher Notes</h2>" in result.output
    assert canvas_api.writes == []


def test_teacher_notes_updates_page_in_place(canvas_api: CanvasAPIMock) -> None:
    _seed(canvas_api)

    result = RUNNER.invoke(app, ["teacher-notes", "--session-name", "Session 03"])

    assert result.exit_code == 0, result.output
    assert "Archived previous page content: Teacher Notes (Archive " in result.output
    assert "Updated existing page." in result.output
    assert "Module item placement already correct." in result.output
    assert "Page URL: http://canvas-mock.local/courses/42/pages/teacher-notes" in result.output
    assert "<h2>Teacher Notes</h2>" in canvas_api.pages["teacher-notes"]["body"]


def test_teacher_notes_draft_leaves_module_alone(canvas_api: CanvasAPIMock, tmp_path: Path) -> None:
    module_id = _seed(canvas_api)
    log_file = tmp_path / "writes.jsonl"

    result = RUNNER.invoke(
        app,
        ["teacher-notes", "--session-name", "Session 03", "--draft", "--course-id", "42", "--log-file", str(log_file)],
    )

    assert result.exit_code == 0, result.output
    assert "Mode: draft" in result.output
    assert "Teacher notes title: Teacher Notes (Draft)" in result.output
    assert "Created page." in result.output
    assert "Draft mode: module placement unchanged." in result.output
    assert "Teacher Notes (Draft)" not in canvas_api.module_titles(module_id)
    assert canvas_api.pages["teacher-notes"]["body"] == "<p>Old notes.</p>"
    assert '"stage":"create_page"' in log_file.read_text()


def test_teacher_notes_custom_title_from_config(canvas_api: CanvasAPIMock, tmp_path: Path) -> None:
    module_id = _seed(canvas_api)
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text("teacher_notes:\n  page_title: Lesson Guide\n", encoding="utf-8")

    result = RUNNER.invoke(app, ["teacher-notes", "--session-name", "Session 03", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "Created page." in result.output
    assert "Added page to session module." in result.output
    assert canvas_api.module_titles(module_id)[1] == "Lesson Guide"


def test_teacher_notes_require_archive_aborts(canvas_api: CanvasAPIMock) -> None:
    _seed(canvas_api)
    canvas_api.fail_archive_creates = True

    result = RUNNER.invoke(app, ["teacher-notes", "--session-name", "Session 03", "--require-archive"])

    assert result.exit_code == 1
    assert "page left unchanged" in result.output
    assert canvas_api.pages["teacher-notes"]["body"] == "<p>Old notes.</p>"


def test_teacher_notes_unknown_module_fails(canvas_api: CanvasAPIMock) -> None:
    _seed(canvas_api)

    result = RUNNER.invoke(app, ["teacher-notes", "--session-name", "Session 9"])

    assert result.exit_code == 1
    assert "No modules found" in result.output


def test_teacher_notes_requires_course(canvas_api: CanvasAPIMock, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CANVAS_TEST_COURSE_ID")

    result = RUNNER.invoke(app, ["teacher-notes", "--session-name", "Session 03", "--dry-run"])

    assert result.exit_code == 2
    assert canvas_api.writes == []


def test_missing_token_is_reported(canvas_api: CanvasAPIMock, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CANVAS_API_TOKEN")

    result = RUNNER.invoke(app, ["session-headers", "--module-name", "Session 03", "--session", "3"])

    assert result.exit_code != 0
    assert "CANVAS_API_TOKEN" in result.output


def test_session_headers_dry_run(canvas_api: CanvasAPIMock) -> None:
    module_id = canvas_api.add_module("Session 03")

    result = RUNNER.invoke(app, ["session-headers", "--module-name", "session 03", "--session", "3", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert f"Module: Session 03 ({module_id})" in result.output
    assert "Session: 03" in result.output
    assert "- Session 03: Task C" in result.output
    assert "Dry run: no module items created." in result.output
    assert canvas_api.writes == []


def test_session_headers_creates_subheaders(canvas_api: CanvasAPIMock) -> None:
    module_id = canvas_api.add_module("Session 03")

    result = RUNNER.invoke(app, ["session-headers", "--module-name", "Session 03", "--session", "3"])

    assert result.exit_code == 0, result.output
    assert "Session headers created." in result.output
    assert canvas_api.module_titles(module_id) == [
        "Teachers Notes",
        "QUIZ",
        "Session 03: Task A",
        "Session 03: Task B",
        "Session 03: Task C",
    ]
    assert all(item["type"] == "SubHeader" for item in canvas_api.items[module_id])


def _json_output(result) -> dict:
    text = result.stdout
    return json.loads(text[text.index("{") : text.rindex("}") + 1])


def test_module_overview_lists_course_modules(canvas_api: CanvasAPIMock) -> None:
    first = canvas_api.add_module("Session 01")
    second = canvas_api.add_module("Session 02")

    result = RUNNER.invoke(app, ["module-overview", "--json"])

    assert result.exit_code == 0, result.output
    payload = _json_output(result)
    assert payload["summary"] == "Found 2 modules in course 42."
    assert payload["details"] == {
        "modules": [{"id": first, "name": "Session 01"}, {"id": second, "name": "Session 02"}]
    }
    assert canvas_api.writes == []


def test_module_overview_details_one_module(canvas_api: CanvasAPIMock) -> None:
    module_id = _seed(canvas_api)

    result = RUNNER.invoke(app, ["module-overview", "--module-name", "session 03", "--json"])

    assert result.exit_code == 0, result.output
    payload = _json_output(result)
    details = payload["details"]
    assert payload["summary"] == 'Module "Session 03" has 5 items.'
    assert details["module"] == {"id": module_id, "name": "Session 03"}
    assert details["itemCountsByType"] == {"SubHeader": 2, "Page": 3}
    assert [item["position"] for item in details["items"]] == [1, 2, 3, 4, 5]
    assert details["items"][0]["page_url"] is None
    assert details["items"][1]["page_url"] == "teacher-notes"
    assert details["items"][3]["title"] == "Wiring"


def test_module_overview_prints_summary_and_counts(canvas_api: CanvasAPIMock) -> None:
    _seed(canvas_api)

    result = RUNNER.invoke(app, ["module-overview", "--module-name", "Session 03"])

    assert result.exit_code == 0, result.output
    assert 'Module "Session 03" has 5 items.' in result.output
    assert "SubHeader: 2" in result.output
    assert "Page: 3" in result.output
    assert "Position" in result.output


def test_module_overview_unknown_module_fails(canvas_api: CanvasAPIMock) -> None:
    _seed(canvas_api)

    result = RUNNER.invoke(app, ["module-overview", "--module-name", "Session 9"])

    assert result.exit_code == 1
    assert "No modules found" in result.output


def test_malformed_config_is_a_usage_error(canvas_api: CanvasAPIMock, tmp_path: Path) -> None:
    _seed(canvas_api)
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text("teacher_notes: [unclosed\n", encoding="utf-8")

    result = RUNNER.invoke(app, ["teacher-notes", "--session-name", "Session 03", "--config", str(config_path)])

    assert result.exit_code == 2
    assert "Traceback" not in result.output
    assert canvas_api.writes == []


def test_non_json_canvas_response_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CANVAS_BASE_URL", "https://canvas.test")
    monkeypatch.setenv("CANVAS_API_TOKEN", "token")
    monkeypatch.setenv("CANVAS_TEST_COURSE_ID", "42")

    def _factory(config, *, client: httpx.Client | None = None, timeout: float = 30.0) -> CanvasClient:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        return CanvasClient(config, client=httpx.Client(transport=transport, base_url=config.base_url))

    monkeypatch.setattr("nexgen.cli.canvas.CanvasClient", _factory)

    for args in (
        ["teacher-notes", "--session-name", "Session 03", "--dry-run"],
        ["session-headers", "--module-name", "Session 03", "--session", "3"],
        ["module-overview"],
    ):
        result = RUNNER.invoke(app, args)
        assert result.exit_code == 1, args
        assert "non-JSON payload" in result.output
