# File: src/slashkeeper/api/routes.py
from fastapi import APIRouter, HTTPException, Query, Request

from .models import MissedBlocksResponse, ParamsResponse, SigningInfo, SigningInfosResponse
from ..storage.signing_info import SigningInfoStore
from ..utils.config import Config

router = APIRouter(prefix="/api/v1/slashing")

def _store(request: Request) -> SigningInfoStore:
    return request.app.state.store

@router.get("/params", response_model=ParamsResponse)
async def get_params(request: Request):
    return ParamsResponse(**request.app.state.params.to_dict())

@router.get("/signing_infos", response_model=SigningInfosResponse)
async def get_signing_infos(
    request: Request,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=Config.MAX_PAGE_LIMIT)
):
    infos = list(_store(request).iterate())
    page = infos[offset:offset + limit]
    return SigningInfosResponse(
        signing_infos=[SigningInfo(**info.to_dict()) for info in page],
        total=len(infos),
        offset=offset,
        limit=limit
    )

@router.get("/signing_infos/{address}", response_model=SigningInfo)
async def get_signing_info(request: Request, address: str):
    info = _store(request).get_or_none(address)
    if info is None:
        raise HTTPException(status_code=404, detail="Signing info not found")
    return SigningInfo(**info.to_dict())

@router.get("/signing_infos/{address}/missed_blocks", response_model=MissedBlocksResponse)
async def get_missed_blocks(request: Request, address: str):
    store = _store(request)
    if not store.has(address):
        raise HTTPException(status_code=404, detail="Signing info not found")
    return MissedBlocksResponse(
        address=address,
        window=request.app.state.params.signed_blocks_window,
        missed=store.missed_blocks(address)
    )
