"""공유 링크 엔드포인트"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ghost_setup.api.dependencies import get_share_service
from ghost_setup.schemas.api_schema import ShareRequest, ShareResponse, SharedSetupResponse
from ghost_setup.services.impl.share_service import ShareService

router = APIRouter(prefix="/api", tags=["share"])


@router.post("/share", response_model=ShareResponse, response_model_by_alias=True)
async def create_share(request: ShareRequest, share_service: ShareService = Depends(get_share_service)):
    """세트 공유 링크 생성 (7일 보관)"""
    return await share_service.create(request.setup)


@router.get("/share", response_model=SharedSetupResponse, response_model_by_alias=True)
async def get_share(
    share_id: Optional[str] = Query(None, alias="id"),
    share_service: ShareService = Depends(get_share_service),
):
    """공유 세트 조회 (조회수 증가)"""
    return await share_service.get(share_id)
