"""AI 장면 이미지 엔드포인트"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from ghost_setup.api.dependencies import get_image_client
from ghost_setup.core.logging import logger
from ghost_setup.providers.gemini_image import MAX_VARIATIONS, GeminiImageClient, estimate_generation_time
from ghost_setup.schemas.api_schema import SceneRequest, SceneResponse

router = APIRouter(prefix="/api", tags=["scene"])


@router.post("/ai-scene", response_model=SceneResponse, response_model_by_alias=True)
async def generate_scene(
    request: SceneRequest,
    variations: int = Query(1, ge=1, le=MAX_VARIATIONS),
    image_client: GeminiImageClient = Depends(get_image_client),
):
    """선택한 상품들이 놓인 방 장면 생성 (variations > 1이면 순차로 여러 장)"""
    logger.info(
        f"[API] Scene request: products={len(request.products)}, style={request.style}, variations={variations}"
    )
    if variations > 1:
        scenes = await image_client.generate_scene_variations(request, variations)
    else:
        scenes = [await image_client.generate_scene(request)]

    return SceneResponse(
        scenes=scenes,
        count=len(scenes),
        style=request.style,
        product_count=len(request.products),
        metadata={
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "style": request.style,
            "roomType": request.room_type or "inferred",
            "productTitles": [p.title for p in request.products[:3]],
            "estimatedGenerationTime": estimate_generation_time(len(request.products), variations),
        },
    )
