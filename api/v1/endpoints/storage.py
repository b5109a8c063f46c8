from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from core import messages
from core.errors import GatewayError
from db.gateway import Gateway, get_gateway


router = APIRouter(tags=["storage"])
logger = logging.getLogger(__name__)


@router.get("/storage/{bucket}/{path:path}")
async def public_object(bucket: str, path: str, gateway: Gateway = Depends(get_gateway)) -> Response:
    try:
        stored = await gateway.download(bucket, path)
    except GatewayError:
        logger.exception("storage.download.error", extra={"bucket": bucket, "path": path})
        raise HTTPException(status_code=502, detail=messages.DATA_LOAD_FAILED)
    if stored is None:
        raise HTTPException(status_code=404, detail=messages.FILE_NOT_FOUND)
    data, content_type = stored
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "public, max-age=3600"})
