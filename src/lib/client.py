"""
Zettelstore client API access

A thin synchronous client over httpx. One instance is created at start-up
and shared by all requests; httpx.Client is safe for that.

Endpoints used:
    POST /a                  token login (basic auth)
    GET  /j                  zettel list as JSON
    GET  /j/{zid}            zettel metadata as JSON
    GET  /o/{zid}            zettel order (slide-set table of contents)
    GET  /v/{zid}?enc=zjson  evaluated zettel as ZJSON
    GET  /z/{zid}            raw zettel content
"""

from typing import Any, Dict, List, Mapping, Optional

import httpx

from .log import LOG
from .zjson import NAME_INLINE, NAME_STRING, ZettelID
from ..models.presenter import (
    KEY_AUTHOR,
    KEY_COPYRIGHT,
    KEY_LICENSE,
    KEY_SLIDESET_ROLE,
    ZID_CONFIG,
    PresenterConfig,
)
from ..models.zettel import Meta, OrderEntry, Zettel, ZettelOrder


class ZettelstoreError(Exception):
    """Raised when the Zettelstore cannot deliver what was asked for"""
    pass


class ZettelNotFound(ZettelstoreError):
    """Raised for unknown (or invisible) zettel"""
    pass


def meta_normalize(raw: Any) -> Meta:
    """
    Turn the metadata of a JSON or ZJSON response into a Meta map.

    Plain JSON delivers strings; ZJSON delivers objects holding either a
    string ("s") or an inline array ("i"). Anything else is dropped.

    Example:
        >>> meta_normalize({"title": {"": "Zettelmarkup", "i": [{"": "Text", "s": "Hi"}]}, "lang": "en"})
        {'title': [{'': 'Text', 's': 'Hi'}], 'lang': 'en'}
    """
    meta: Meta = {}
    if not isinstance(raw, dict):
        return meta
    for key, value in raw.items():
        if isinstance(value, (str, list)):
            meta[key] = value
        elif isinstance(value, dict):
            if isinstance(value.get(NAME_INLINE), list):
                meta[key] = value[NAME_INLINE]
            elif isinstance(value.get(NAME_STRING), str):
                meta[key] = value[NAME_STRING]
    return meta


def entries_make(raw: Any) -> List[OrderEntry]:
    entries: List[OrderEntry] = []
    if not isinstance(raw, list):
        return entries
    for item in raw:
        if isinstance(item, dict) and isinstance(item.get("id"), str):
            entries.append(OrderEntry(zid=ZettelID(item["id"]), meta=meta_normalize(item.get("meta"))))
    return entries


class ZettelstoreClient:
    """
    Client for one Zettelstore

    Attributes:
        base_url: Base URL of the Zettelstore
        http: Underlying httpx client
        username, password: Credentials for token login, if any
        token: Bearer token after auth_login()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url: Base URL, e.g. "http://127.0.0.1:23123"
            timeout: Timeout in seconds for every request
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self.username = ""
        self.password = ""
        self.token: Optional[str] = None

    def close(self) -> None:
        self.http.close()

    def auth_set(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    def auth_login(self) -> None:
        """
        Exchange user name and password for a bearer token.

        Raises:
            ZettelstoreError: Login refused or Zettelstore unreachable
        """
        try:
            response = self.http.post("/a", auth=(self.username, self.password))
        except httpx.HTTPError as e:
            raise ZettelstoreError(f"Authentication request failed: {e}") from e
        if response.status_code != httpx.codes.OK:
            raise ZettelstoreError(f"Authentication failed: HTTP {response.status_code}")
        try:
            self.token = response.json()["token"]
        except (ValueError, KeyError, TypeError) as e:
            raise ZettelstoreError(f"Malformed authentication response: {e}") from e
        LOG(f"Authenticated as {self.username}", level=2)

    def response_get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        """
        GET a path, mapping failures to ZettelstoreError.

        Raises:
            ZettelNotFound: HTTP 404
            ZettelstoreError: Any other HTTP or transport failure
        """
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.http.get(path, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise ZettelstoreError(f"GET {path} failed: {e}") from e
        if response.status_code == httpx.codes.NOT_FOUND:
            raise ZettelNotFound(f"GET {path}: not found")
        if response.status_code != httpx.codes.OK:
            raise ZettelstoreError(f"GET {path}: HTTP {response.status_code}")
        LOG(f"GET {path}: {len(response.content)} bytes", level=3)
        return response

    def json_get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        response = self.response_get(path, params)
        try:
            data = response.json()
        except ValueError as e:
            raise ZettelstoreError(f"GET {path}: invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ZettelstoreError(f"GET {path}: unexpected JSON value")
        return data

    def meta_fetch(self, zid: ZettelID) -> Meta:
        """Shallow retrieval: metadata only"""
        data = self.json_get(f"/j/{zid}", params={"part": "meta"})
        return meta_normalize(data.get("meta"))

    def zettel_fetch(self, zid: ZettelID) -> Zettel:
        """Full retrieval: metadata and ZJSON content"""
        data = self.json_get(f"/v/{zid}", params={"enc": "zjson", "part": "zettel"})
        content = data.get("content")
        return Zettel(
            zid=zid,
            meta=meta_normalize(data.get("meta")),
            content=content if isinstance(content, list) else None,
        )

    def raw_fetch(self, zid: ZettelID) -> bytes:
        """Raw content, e.g. image bytes"""
        return self.response_get(f"/z/{zid}", params={"part": "content"}).content

    def order_fetch(self, zid: ZettelID) -> ZettelOrder:
        """
        Retrieve a slide set: its metadata and the ordered list of zettel
        it references.
        """
        data = self.json_get(f"/o/{zid}")
        return ZettelOrder(
            zid=zid,
            meta=meta_normalize(data.get("meta")),
            entries=entries_make(data.get("list")),
        )

    def zettel_list(self, query: Optional[Mapping[str, Any]] = None) -> List[OrderEntry]:
        data = self.json_get("/j", params=query)
        return entries_make(data.get("list"))

    def config_fetch(self, defaults: PresenterConfig) -> PresenterConfig:
        """
        Read presenter defaults from the configuration zettel.

        A missing configuration zettel leaves the defaults untouched; other
        errors propagate.
        """
        try:
            meta = self.meta_fetch(ZID_CONFIG)
        except ZettelNotFound:
            LOG(f"No configuration zettel {ZID_CONFIG}, using defaults", level=2)
            return defaults

        def value_get(key: str, default: str) -> str:
            value = meta.get(key)
            return value if isinstance(value, str) and value else default

        return PresenterConfig(
            slideset_role=value_get(KEY_SLIDESET_ROLE, defaults.slideset_role),
            author=value_get(KEY_AUTHOR, defaults.author),
            copyright=value_get(KEY_COPYRIGHT, defaults.copyright),
            license=value_get(KEY_LICENSE, defaults.license),
        )
