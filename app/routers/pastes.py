"""Router for creating and fetching pastes."""

from fastapi import APIRouter, Request

from app.schemas import CreatePasteRequest, CreatePasteResponse, Paste
from app.services.pastes import PasteService

router = APIRouter(tags=["Pastes"])


def _service(request: Request) -> PasteService:
    return request.app.state.paste_service


@router.post("", status_code=201, response_model=CreatePasteResponse)
async def create_paste(payload: CreatePasteRequest, request: Request) -> CreatePasteResponse:
    paste_id = await _service(request).create(payload)
    return CreatePasteResponse(id=paste_id)


@router.get("/{paste_id}", response_model=Paste)
async def get_paste(paste_id: str, request: Request) -> Paste:
    return await _service(request).fetch(paste_id)
