"""In-process blob store used by the client and library tests."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from aiohttp import web
from aiohttp.test_utils import TestServer


class FakeBlobStore:
    """Minimal list/put/delete blob API backed by a dict."""

    def __init__(self, token: str = "tok_xyz") -> None:
        self.token = token
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.data: Dict[str, bytes] = {}
        self.extra_entries: List[Any] = []
        self.requests: List[Tuple[str, str]] = []
        self.put_headers: List[Any] = []
        self.list_queries: List[Dict[str, str]] = []
        self.put_queries: List[Dict[str, str]] = []
        self.deleted: List[str] = []
        self.fail_list: Optional[int] = None
        self.fail_put: Optional[int] = None
        self.server: Optional[TestServer] = None

    @property
    def base_url(self) -> str:
        return str(self.server.make_url("/")).rstrip("/")

    async def start(self) -> None:
        app = web.Application()
        app.router.add_get("/", self._list)
        app.router.add_post("/delete", self._delete)
        app.router.add_get("/files/{pathname:.+}", self._download)
        app.router.add_put("/{pathname:.+}", self._put)
        self.server = TestServer(app)
        await self.server.start_server()

    async def close(self) -> None:
        if self.server is not None:
            await self.server.close()

    def seed(self, pathname: str, data: bytes = b"img", content_type: str = "image/png") -> None:
        self.data[pathname] = data
        self.objects[pathname] = {
            "pathname": pathname,
            "url": f"{self.base_url}/files/{pathname}",
            "size": len(data),
            "contentType": content_type,
            "uploadedAt": "2025-10-12T08:30:00.000Z",
        }

    def _authorized(self, request: web.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {self.token}"

    async def _list(self, request: web.Request) -> web.Response:
        self.requests.append((request.method, request.path))
        self.list_queries.append(dict(request.query))
        if self.fail_list:
            return web.Response(status=self.fail_list, text="list denied")
        if not self._authorized(request):
            return web.Response(status=403, text="forbidden")
        blobs = list(self.objects.values()) + self.extra_entries
        return web.json_response({"blobs": blobs, "hasMore": False})

    async def _put(self, request: web.Request) -> web.Response:
        self.requests.append((request.method, request.path))
        self.put_headers.append(request.headers.copy())
        self.put_queries.append(dict(request.query))
        if self.fail_put:
            return web.Response(status=self.fail_put, text="upload failed")
        if not self._authorized(request):
            return web.Response(status=403, text="forbidden")
        pathname = request.match_info["pathname"]
        body = await request.read()
        self.seed(pathname, body, request.headers.get("Content-Type", ""))
        entry = dict(self.objects[pathname])
        del entry["size"]
        return web.json_response(entry)

    async def _delete(self, request: web.Request) -> web.Response:
        self.requests.append((request.method, request.path))
        if not self._authorized(request):
            return web.Response(status=403, text="forbidden")
        payload = await request.json()
        for url in payload["urls"]:
            self.deleted.append(url)
            self.objects.pop(url, None)
            self.data.pop(url, None)
        return web.json_response({})

    async def _download(self, request: web.Request) -> web.Response:
        pathname = request.match_info["pathname"]
        if pathname not in self.data:
            return web.Response(status=404, text="not found")
        return web.Response(body=self.data[pathname])
