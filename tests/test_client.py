"""
Zettelstore client tests

Requests are answered by an httpx.MockTransport, so these tests check the
paths and parameters sent as well as the handling of replies.
"""

import httpx
import pytest

from zettelpresenter.lib.client import (
    ZettelNotFound,
    ZettelstoreClient,
    ZettelstoreError,
    meta_normalize,
)
from zettelpresenter.models.presenter import PresenterConfig

from builders import ZID_A, ZID_B, ZID_SET, para, text


def client_make(handler) -> ZettelstoreClient:
    return ZettelstoreClient("http://zettel.test/", transport=httpx.MockTransport(handler))


class TestMetaNormalize:
    """JSON and ZJSON metadata"""

    def test_plain_and_rich_values(self):
        raw = {
            "title": {"": "Zettelmarkup", "i": [text("Hi")]},
            "role": {"": "Word", "s": "slideset"},
            "lang": "en",
            "tags": ["#a", "#b"],
            "broken": 42,
        }
        assert meta_normalize(raw) == {
            "title": [text("Hi")],
            "role": "slideset",
            "lang": "en",
            "tags": ["#a", "#b"],
        }

    def test_not_a_map(self):
        assert meta_normalize(None) == {}
        assert meta_normalize([]) == {}


class TestFetch:
    """Retrieval endpoints"""

    def test_meta_fetch(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": ZID_A, "meta": {"title": "A"}})

        meta = client_make(handler).meta_fetch(ZID_A)
        assert meta == {"title": "A"}
        assert seen[0].url.path == f"/j/{ZID_A}"
        assert seen[0].url.params["part"] == "meta"

    def test_zettel_fetch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/v/{ZID_A}"
            assert request.url.params["enc"] == "zjson"
            return httpx.Response(200, json={"meta": {"title": {"": "Word", "s": "A"}}, "content": [para(text("x"))]})

        zettel = client_make(handler).zettel_fetch(ZID_A)
        assert zettel.zid == ZID_A
        assert zettel.meta == {"title": "A"}
        assert zettel.content == [para(text("x"))]

    def test_zettel_without_content(self):
        client = client_make(lambda request: httpx.Response(200, json={"meta": {"title": "A"}}))
        assert client.zettel_fetch(ZID_A).content is None

    def test_raw_fetch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/z/{ZID_A}"
            return httpx.Response(200, content=b"\x89PNG")

        assert client_make(handler).raw_fetch(ZID_A) == b"\x89PNG"

    def test_order_fetch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/o/{ZID_SET}"
            return httpx.Response(200, json={
                "id": ZID_SET,
                "meta": {"title": "Talk"},
                "list": [
                    {"id": ZID_A, "meta": {"title": "A"}},
                    {"id": ZID_B},
                    {"no-id": True},
                ],
            })

        order = client_make(handler).order_fetch(ZID_SET)
        assert order.meta == {"title": "Talk"}
        assert [e.zid for e in order.entries] == [ZID_A, ZID_B]
        assert order.entries[0].meta == {"title": "A"}
        assert order.entries[1].meta == {}

    def test_zettel_list_forwards_query(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/j"
            assert request.url.params["role"] == "slideset"
            return httpx.Response(200, json={"list": [{"id": ZID_A, "meta": {}}]})

        entries = client_make(handler).zettel_list({"role": "slideset"})
        assert [e.zid for e in entries] == [ZID_A]


class TestErrors:
    """Failure mapping"""

    def test_not_found(self):
        client = client_make(lambda request: httpx.Response(404))
        with pytest.raises(ZettelNotFound):
            client.meta_fetch(ZID_A)

    def test_server_error(self):
        client = client_make(lambda request: httpx.Response(500))
        with pytest.raises(ZettelstoreError) as excinfo:
            client.zettel_fetch(ZID_A)
        assert not isinstance(excinfo.value, ZettelNotFound)

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ZettelstoreError):
            client_make(handler).raw_fetch(ZID_A)

    def test_invalid_json(self):
        client = client_make(lambda request: httpx.Response(200, content=b"not json"))
        with pytest.raises(ZettelstoreError):
            client.meta_fetch(ZID_A)


class TestAuth:
    """Token login"""

    def test_login_and_bearer(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/a":
                return httpx.Response(200, json={"token": "tok", "token_type": "Bearer", "expires_in": 600})
            return httpx.Response(200, json={"meta": {}})

        client = client_make(handler)
        client.auth_set("user", "secret")
        client.auth_login()
        client.meta_fetch(ZID_A)

        assert seen[0].method == "POST"
        assert seen[0].headers["Authorization"].startswith("Basic ")
        assert seen[1].headers["Authorization"] == "Bearer tok"

    def test_login_refused(self):
        client = client_make(lambda request: httpx.Response(401))
        client.auth_set("user", "wrong")
        with pytest.raises(ZettelstoreError):
            client.auth_login()

    def test_no_token_no_header(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"meta": {}})

        client_make(handler).meta_fetch(ZID_A)
        assert "Authorization" not in seen[0].headers


class TestConfig:
    """Configuration zettel"""

    def test_missing_config_keeps_defaults(self):
        defaults = PresenterConfig(author="Default")
        client = client_make(lambda request: httpx.Response(404))
        assert client.config_fetch(defaults) == defaults

    def test_config_overrides(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/j/00009000001000"
            return httpx.Response(200, json={"meta": {"slideset-role": "deck", "author": "Zettel Author"}})

        config = client_make(handler).config_fetch(PresenterConfig(author="Default", license="MIT"))
        assert config == PresenterConfig(slideset_role="deck", author="Zettel Author", license="MIT")

    def test_config_other_errors_propagate(self):
        client = client_make(lambda request: httpx.Response(503))
        with pytest.raises(ZettelstoreError):
            client.config_fetch(PresenterConfig())
