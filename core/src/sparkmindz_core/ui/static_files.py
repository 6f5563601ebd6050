from __future__ import annotations

import os
from collections.abc import Iterable
from typing import Any, Final

from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

HTML_CACHE_CONTROL: Final[str] = "no-store, no-cache, must-revalidate, proxy-revalidate"
ASSET_CACHE_CONTROL: Final[str] = "public, max-age=31536000"

_HTML_SUFFIXES: Final[tuple[str, ...]] = (".html", ".htm")


def cache_control_for(path: str) -> str:
    if path.lower().endswith(_HTML_SUFFIXES):
        return HTML_CACHE_CONTROL
    return ASSET_CACHE_CONTROL


class CachingStaticFiles(StaticFiles):
    """StaticFiles with per-type Cache-Control and extensionless .html lookup.

    Pages are never cached so a logout is reflected immediately; everything else is
    treated as immutable. Names in ``exclude`` are never served as pages, so site
    content cannot expose a page that is meant to sit behind a route.
    """

    def __init__(self, *args: Any, exclude: Iterable[str] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._exclude = frozenset(name.strip("/") for name in exclude)

    async def get_response(self, path: str, scope: Scope) -> Response:
        # Anything but a read falls through to here only because no route matched.
        if scope["method"] not in ("GET", "HEAD"):
            raise HTTPException(status_code=404)
        return await super().get_response(path, scope)

    def lookup_path(self, path: str) -> tuple[str, os.stat_result | None]:
        base, ext = os.path.splitext(path.strip("/"))
        if base in self._exclude and ext.lower() in ("", *_HTML_SUFFIXES):
            return "", None

        full_path, stat_result = super().lookup_path(path)
        if stat_result is not None or not path or path.endswith("/"):
            return full_path, stat_result

        _, ext = os.path.splitext(path)
        if ext:
            return full_path, stat_result

        for suffix in _HTML_SUFFIXES:
            candidate, candidate_stat = super().lookup_path(path + suffix)
            if candidate_stat is not None:
                return candidate, candidate_stat
        return full_path, stat_result

    def file_response(
        self,
        full_path: str | os.PathLike[str],
        stat_result: os.stat_result,
        scope: Scope,
        status_code: int = 200,
    ) -> Response:
        response = super().file_response(full_path, stat_result, scope, status_code)
        response.headers["Cache-Control"] = cache_control_for(str(full_path))
        return response
