"""
Status API

- GET /status: aggregated status for every configured server
"""

from fastapi import APIRouter, Depends

from control.api import get_context
from control.context import FleetContext

router = APIRouter(prefix="/status", tags=["status"])


@router.get("")
def get_statuses(force_refresh: bool = False, ctx: FleetContext = Depends(get_context)):
    statuses = ctx.aggregator.fetch_all(ctx.servers, force_refresh=force_refresh)
    return {
        "servers": [
            {
                "id": server.id,
                "name": server.display_name,
                **statuses[server.id].to_dict(),
            }
            for server in ctx.servers
        ]
    }


@router.delete("/cache")
def clear_cache(ctx: FleetContext = Depends(get_context)):
    ctx.resource_cache.clear()
    return {"status": "cleared"}
