"""
Vogue Client Script Route.

Serves the browser script for any other GET request.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import Response

router = APIRouter()

CLIENT_SCRIPT = Path(__file__).parent.parent / "static" / "vogue-client.js"


@lru_cache(maxsize=1)
def load_client_script() -> bytes:
    """Read the client script once."""
    return CLIENT_SCRIPT.read_bytes()


@router.get("/{path:path}", include_in_schema=False)
async def client_script(path: str) -> Response:
    """Return the client script regardless of the requested path."""
    return Response(content=load_client_script(), media_type="text/javascript")
