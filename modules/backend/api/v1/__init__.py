"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from modules.backend.api.v1.endpoints import actions, board

router = APIRouter()

# Board endpoints
router.include_router(board.router, prefix="/board", tags=["board"])

# Board UI action dispatch
router.include_router(actions.router, prefix="/board/actions", tags=["board"])
