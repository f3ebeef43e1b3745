"""Startup sequencing: connect -> seed (unless CI) -> serve"""

import pytest
import uvicorn
from fastapi.testclient import TestClient

import main
from config import Settings
from database import AppContext
from errors import StorageUnavailable


@pytest.fixture
def patched_open_context(monkeypatch, mongo_client):
    opened = []

    def fake_open_context(settings):
        ctx = AppContext(settings=settings, client=mongo_client, db=mongo_client["courseStore"])
        opened.append(ctx)
        return ctx

    monkeypatch.setattr(main, "open_context", fake_open_context)
    return opened


class TestLifespan:

    def test_empty_store_boot_seeds_catalog(self, patched_open_context):
        app = main.create_app(Settings(ci=False))

        with TestClient(app) as client:
            titles = sorted(c["title"] for c in client.get("/api/courses").json())

        assert titles == ["English Basics", "French Advanced", "Spanish Beginner"]
        assert len(patched_open_context) == 1

    def test_ci_boot_skips_seed(self, patched_open_context):
        app = main.create_app(Settings(ci=True))

        with TestClient(app) as client:
            assert client.get("/api/courses").json() == []

    def test_owned_context_released_on_shutdown(self, patched_open_context):
        app = main.create_app(Settings(ci=True))

        with TestClient(app):
            assert app.state.context is patched_open_context[0]
        assert app.state.context is None

    def test_supplied_context_is_not_reopened(self, patched_open_context, context):
        app = main.create_app(context=context)

        with TestClient(app):
            pass

        assert patched_open_context == []
        assert app.state.context is context


class TestRun:

    def test_exhausted_retries_exit_with_code_1(self, monkeypatch):
        def unreachable(settings):
            raise StorageUnavailable(ConnectionError("refused"), settings.connect_retries)

        def never_listen(*args, **kwargs):
            raise AssertionError("server must not start")

        monkeypatch.setattr(main, "open_context", unreachable)
        monkeypatch.setattr(uvicorn, "run", never_listen)

        with pytest.raises(SystemExit) as exc:
            main.run()

        assert exc.value.code == 1

    def test_serves_after_startup(self, monkeypatch, patched_open_context):
        served = {}

        def fake_run(app, host, port):
            served.update(app=app, host=host, port=port)

        monkeypatch.setenv("PORT", "4321")
        monkeypatch.setenv("CI", "1")
        monkeypatch.setattr(uvicorn, "run", fake_run)

        main.run()

        assert served["port"] == 4321
        assert served["app"].state.context is patched_open_context[0]


class TestStorefront:

    def test_root_serves_index(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Course Store" in response.text

    def test_missing_storefront_is_404(self, tmp_path, context):
        app = main.create_app(Settings(static_dir=str(tmp_path / "missing")), context=context)
        with TestClient(app) as client:
            assert client.get("/").status_code == 404

    def test_static_assets_served(self, tmp_path, context):
        (tmp_path / "index.html").write_text("<h1>shop</h1>")
        (tmp_path / "app.js").write_text("console.log('hi')")
        app = main.create_app(Settings(static_dir=str(tmp_path)), context=context)

        with TestClient(app) as client:
            assert client.get("/").text == "<h1>shop</h1>"
            assert client.get("/app.js").status_code == 200
            assert client.get("/api/courses").json() == []


class TestDiagnostics:

    def test_reports_connected_database(self, client, context):
        context.db["course"].insert_one({"title": "X"})

        body = client.get("/test").json()

        assert body["connection_status"] == "Connected"
        assert body["database_name"] == "courseStore"
        assert "course" in body["collections"]


class TestUnexpectedErrors:

    def test_unclassified_failure_is_500_json(self, monkeypatch, context):
        def explode(*args, **kwargs):
            raise RuntimeError("cursor went away")

        monkeypatch.setattr(main, "get_documents", explode)
        app = main.create_app(context=context)

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/courses")

        assert response.status_code == 500
        assert response.json() == {"error": "cursor went away"}
