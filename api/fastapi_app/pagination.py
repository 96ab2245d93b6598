from __future__ import annotations
from fastapi import Request, Response


def set_pagination_headers(response: Response, request: Request, total: int, page: int, size: int) -> None:
    """Ajoute les en-têtes RFC5988 Link et X-Total-Count."""
    links: list[str] = []
    if page > 1:
        prev_url = str(request.url.include_query_params(page=page - 1, size=size))
        links.append(f"<{prev_url}>; rel=\"prev\"")
    if page * size < total:
        next_url = str(request.url.include_query_params(page=page + 1, size=size))
        links.append(f"<{next_url}>; rel=\"next\"")
    if links:
        response.headers["Link"] = ", ".join(links)
    response.headers["X-Total-Count"] = str(total)
