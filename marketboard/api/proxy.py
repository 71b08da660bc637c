"""Development reverse proxy: GET <prefix>/<path> -> GET <target>/<path>."""

from __future__ import annotations

import httpx
from fastapi import APIRouter, HTTPException, Request, Response

from marketboard.config.settings import join_url


def build_proxy_router(prefix: str, target: str) -> APIRouter:
    router = APIRouter(prefix=prefix.rstrip("/"), tags=["proxy"])

    @router.get("/{path:path}")
    async def forward(path: str, request: Request) -> Response:
        client: httpx.AsyncClient = request.app.state.store.client
        url = join_url(target, path)

        try:
            upstream = await client.get(url, params=list(request.query_params.multi_items()))
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=f"Unable to reach upstream: {exc}") from exc

        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )

    return router
