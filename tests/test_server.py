"""
HTTP front end tests

The presenter app runs under FastAPI's TestClient, talking to a mock
Zettelstore served through httpx.MockTransport.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from zettelpresenter.config.settings import AppSettings
from zettelpresenter.lib.client import ZettelstoreClient
from zettelpresenter.lib.completion import CompletionCancelled, SlideSetInvariantError
from zettelpresenter.lib.server import app_create
from zettelpresenter.lib.slideset import SlideSet
from zettelpresenter.models.presenter import PresenterConfig
from zettelpresenter.models.state import ProgramState

from builders import ZID_A, ZID_B, ZID_IMG, ZID_SET, embed, link, para, text

HOME = "00010000000000"


class MockZettelstore:
    """
    Answers the client API from dictionaries

    Attributes:
        meta: Metadata by zettel identifier
        content: ZJSON content by zettel identifier
        raw: Raw content by zettel identifier
        orders: Slide-set entries by identifier
        failing: Identifiers that answer with HTTP 500
    """

    def __init__(self) -> None:
        self.meta = {}
        self.content = {}
        self.raw = {}
        self.orders = {}
        self.failing = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.strip("/").split("/")
        kind = parts[0]
        zid = parts[1] if len(parts) > 1 else ""
        if zid in self.failing:
            return httpx.Response(500)
        if kind == "j" and not zid:
            entries = [{"id": z, "meta": m} for z, m in sorted(self.meta.items())]
            return httpx.Response(200, json={"list": entries})
        if zid not in self.meta:
            return httpx.Response(404)
        if kind == "j":
            return httpx.Response(200, json={"id": zid, "meta": self.meta[zid]})
        if kind == "v":
            return httpx.Response(200, json={"meta": self.meta[zid], "content": self.content.get(zid, [])})
        if kind == "z":
            return httpx.Response(200, content=self.raw.get(zid, b""))
        if kind == "o" and zid in self.orders:
            entries = [{"id": z, "meta": self.meta.get(z, {})} for z in self.orders[zid]]
            return httpx.Response(200, json={"id": zid, "meta": self.meta[zid], "list": entries})
        return httpx.Response(404)


@pytest.fixture
def store() -> MockZettelstore:
    store = MockZettelstore()
    store.meta[ZID_SET] = {"title": "Talk", "role": "slideset"}
    store.orders[ZID_SET] = [ZID_A, ZID_B]
    store.meta[ZID_A] = {"title": "Alpha", "role": "zettel"}
    store.content[ZID_A] = [para(text("Hello"), link(ZID_B, "next")), para(embed(ZID_IMG))]
    store.meta[ZID_B] = {"title": "Beta"}
    store.content[ZID_B] = [para(text("Bye"))]
    store.meta[ZID_IMG] = {"title": "Picture", "syntax": "png"}
    store.raw[ZID_IMG] = b"\x89PNG"
    store.meta[HOME] = {"title": "Home"}
    store.content[HOME] = [para(text("Welcome"))]
    return store


@pytest.fixture
def http(store) -> TestClient:
    client = ZettelstoreClient("http://zettel.test", transport=httpx.MockTransport(store.handler))
    app = app_create(client, PresenterConfig(), ProgramState(verbosity=0), AppSettings(completion_timeout=5))
    return TestClient(app)


class TestPages:
    """Plain pages"""

    def test_health(self, http):
        response = http.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_home(self, http):
        response = http.get("/")
        assert response.status_code == 200
        assert "Welcome" in response.text

    def test_slideset_toc(self, http):
        response = http.get(f"/{ZID_SET}")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert f'href="/sl/{ZID_SET}#(2)"' in response.text

    def test_zettel_page(self, http):
        response = http.get(f"/{ZID_A}")
        assert response.status_code == 200
        assert "<h1>Alpha</h1>" in response.text
        assert f'<a href="/{ZID_B}">next</a>' in response.text

    def test_unknown_zettel(self, http):
        assert http.get("/20991231235959").status_code == 404

    def test_invalid_zid(self, http):
        assert http.get("/not-a-zettel").status_code == 404

    def test_error_page_is_html(self, http):
        response = http.get("/not-a-zettel")
        assert response.headers["content-type"].startswith("text/html")
        assert "<h1>Error 404</h1>" in response.text
        assert "not-a-zettel" in response.text

    def test_list(self, http):
        response = http.get("/l")
        assert response.status_code == 200
        assert f'<a href="/{ZID_A}">Alpha</a>' in response.text

    def test_content(self, http):
        response = http.get(f"/c/{ZID_IMG}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == b"\x89PNG"


class TestSlideSets:
    """Shows and handouts"""

    @pytest.mark.parametrize("prefix", ["sl", "rv", "ho"])
    def test_renders(self, http, prefix):
        response = http.get(f"/{prefix}/{ZID_SET}")
        assert response.status_code == 200
        assert "<h1>Alpha</h1>" in response.text
        assert "<h1>Beta</h1>" in response.text

    def test_handout_embeds_image(self, http):
        assert "data:image/png;base64," in http.get(f"/ho/{ZID_SET}").text

    def test_missing_slide_rendered_as_error(self, http, store):
        store.orders[ZID_SET] = [ZID_A, "20991231235959"]
        response = http.get(f"/sl/{ZID_SET}")
        assert response.status_code == 200
        assert "Error: zettel 20991231235959" in response.text

    def test_invalid_zid(self, http):
        assert http.get("/sl/123").status_code == 404

    def test_unknown_slideset(self, http):
        assert http.get("/sl/20991231235959").status_code == 404

    def test_store_failure(self, http, store):
        store.failing.add(ZID_SET)
        assert http.get(f"/sl/{ZID_SET}").status_code == 502

    def test_completion_cancelled(self, http, monkeypatch):
        def cancelled(self, source, cancel=None):
            raise CompletionCancelled("too slow")

        monkeypatch.setattr(SlideSet, "completion", cancelled)
        assert http.get(f"/ho/{ZID_SET}").status_code == 504

    def test_invariant_breach(self, http, monkeypatch):
        def broken(self, source, cancel=None):
            raise SlideSetInvariantError("lost slide")

        monkeypatch.setattr(SlideSet, "completion", broken)
        assert http.get(f"/rv/{ZID_SET}").status_code == 500
