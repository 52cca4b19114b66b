"""Callback receiver for Kie.ai completion webhooks (local development aid).

The body is only logged; task state still comes from polling.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Body

from tracksync.config import get_settings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/callback")
async def receive_callback(body: Any = Body(None)):
    limit = get_settings().CALLBACK_LOG_LIMIT
    logger.info("Callback body (truncated): %s", json.dumps(body, ensure_ascii=False, default=str)[:limit])
    return {"status": "received"}
