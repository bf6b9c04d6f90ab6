from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter

from coinboard.utils.time import utcnow_iso

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


@router.get("/live")
async def live():
    return {"status": "ok"}


@router.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "UP",
        "timestamp": utcnow_iso(),
        "uptime_s": int(time.time() - APP_STARTED_AT),
    }
