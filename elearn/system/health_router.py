from datetime import datetime

from fastapi import APIRouter, Depends

from elearn.core.database import get_store
from elearn.translation.translator import Translator, get_translator

router = APIRouter(tags=["System"])


@router.get("/health")
async def health(
    store=Depends(get_store),
    translator: Translator = Depends(get_translator),
):
    """
    Liveness plus dependency status.

    The store is required; the translator is optional, so a DOWN translator
    only degrades the report.
    """
    store_up = await store.ping()
    translator_up = await translator.ping()

    if not store_up:
        status = "DOWN"
    elif not translator_up:
        status = "DEGRADED"
    else:
        status = "UP"

    return {
        "status": status,
        "timestamp": datetime.utcnow(),
        "services": {
            "store": "UP" if store_up else "DOWN",
            "translator": "UP" if translator_up else "DOWN",
        },
    }
