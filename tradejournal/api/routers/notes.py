"""
Notes Router
============
Per-token trade plan / note for a wallet.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
import logging

from tradejournal.api.deps import Services, get_services

logger = logging.getLogger("api.notes")
router = APIRouter(prefix="/wallets", tags=["notes"])


class NoteUpdate(BaseModel):
    text: str


@router.get("/{wallet_id}/tokens/{token_address}/note")
async def get_note(wallet_id: str, token_address: str, services: Services = Depends(get_services)):
    note = await services.notes.resolve_note(wallet_id, token_address)
    return {"wallet_id": wallet_id, "token_address": token_address, "note": note}


@router.put("/{wallet_id}/tokens/{token_address}/note")
async def save_note(
    wallet_id: str,
    token_address: str,
    payload: NoteUpdate,
    services: Services = Depends(get_services),
):
    """Best effort: partial failures are reported in the body, not as an HTTP error."""
    result = await services.notes.save_note(wallet_id, token_address, payload.text)
    return {"wallet_id": wallet_id, "token_address": token_address, **result.to_dict()}
