"""Gemini 장면 이미지 생성

선택한 상품들이 놓인 방 장면을 생성합니다.
모델이 이미지 파트를 돌려주면 data: URL로, 텍스트만 돌려주면
프롬프트 해시로 고정된 플레이스홀더 URL을 씁니다.
"""

import asyncio
import base64
from typing import Any, Awaitable, Callable, Optional

from google import genai
from google.genai import types

from ghost_setup.core.config import settings
from ghost_setup.core.exceptions import ExternalAPIException, GhostSetupException
from ghost_setup.core.logging import logger
from ghost_setup.engine.retry import RetryConfig, with_retry
from ghost_setup.schemas.api_schema import SceneRequest, SceneResult
from ghost_setup.schemas.product_schema import Product
from ghost_setup.utils.hash_utils import hash_string

from .gemini import map_gemini_error

MAX_VARIATIONS = 5

SCENE_STYLES: dict[str, dict[str, str]] = {
    "Cozy": {
        "description": "warm, comfortable, inviting atmosphere with soft lighting and natural textures",
        "colors": "warm earth tones, soft browns, creams, and gentle oranges",
        "lighting": "soft, warm lighting with table lamps and natural light",
        "materials": "wood, fabric, natural materials, plants",
    },
    "Minimal": {
        "description": "clean, simple, uncluttered space with focus on functionality",
        "colors": "neutral whites, grays, and blacks with minimal accent colors",
        "lighting": "bright, even lighting with clean lines",
        "materials": "metal, glass, smooth surfaces, geometric shapes",
    },
    "Gaming": {
        "description": "high-tech, energetic setup optimized for gaming performance",
        "colors": "dark backgrounds with RGB lighting, neon accents, blues and purples",
        "lighting": "LED strips, RGB lighting, dramatic backlighting",
        "materials": "modern plastics, metal, glass, high-tech finishes",
    },
    "Modern": {
        "description": "contemporary, sophisticated space with premium finishes",
        "colors": "sophisticated grays, whites, with bold accent colors",
        "lighting": "architectural lighting, pendant lights, clean modern fixtures",
        "materials": "premium materials, marble, steel, leather, glass",
    },
}

VARIATION_HINTS = (
    "Shot from a different angle with emphasis on natural lighting",
    "Alternative camera perspective focusing on the overall room layout",
    "Close-up composition highlighting the key products and their details",
)

# (제목 키워드들, 카테고리) - 앞에서부터 먼저 일치하는 항목 사용
_CATEGORY_KEYWORDS = (
    (("chair", "seat"), "Chair"),
    (("desk", "table"), "Desk"),
    (("monitor", "screen", "display"), "Monitor"),
    (("keyboard",), "Keyboard"),
    (("mouse",), "Mouse"),
    (("lamp", "light"), "Lighting"),
    (("speaker", "audio"), "Audio"),
    (("headphone", "headset"), "Headphones"),
    (("webcam", "camera"), "Camera"),
    (("microphone", "mic"), "Microphone"),
    (("stand", "mount"), "Stand"),
    (("pad", "mat"), "Accessory"),
    (("storage", "organizer"), "Storage"),
    (("plant", "decor"), "Decor"),
)

_ROOM_KEYWORDS = (
    (("gaming", "game", "rgb"), "gaming room"),
    (("office", "desk", "chair"), "office"),
    (("bedroom", "bed", "nightstand"), "bedroom"),
    (("kitchen", "dining"), "kitchen"),
    (("living", "sofa", "couch"), "living room"),
)


def infer_category(title: str) -> str:
    title_lower = title.lower()
    for keywords, category in _CATEGORY_KEYWORDS:
        if any(k in title_lower for k in keywords):
            return category
    return "Product"


def infer_room_type(products: list[Product]) -> str:
    titles = " ".join(p.title.lower() for p in products)
    for keywords, room in _ROOM_KEYWORDS:
        if any(k in titles for k in keywords):
            return room
    return "room"


def build_scene_prompt(request: SceneRequest) -> str:
    style = SCENE_STYLES[request.style]
    descriptions = ", ".join(
        f"{p.category or infer_category(p.title)}: {p.title}" for p in request.products[:5]
    )
    room = request.room_type or infer_room_type(request.products)
    style_lower = request.style.lower()
    return f"""Create a photorealistic {style_lower} style {room} scene featuring these products: {descriptions}.

Style Guidelines:
- {style["description"]}
- Color palette: {style["colors"]}
- Lighting: {style["lighting"]}
- Materials: {style["materials"]}

Scene Requirements:
- Show the products naturally arranged in the space
- Maintain realistic proportions and placement
- Include appropriate background elements and decor

The scene should look like a real {style_lower} {room} from an interior design magazine."""


def add_variation(prompt: str, variation: int) -> str:
    hint = VARIATION_HINTS[(variation - 1) % len(VARIATION_HINTS)]
    return f"{prompt}\n\nVariation {variation}: {hint}"


def placeholder_scene_url(prompt: str) -> str:
    """프롬프트가 같으면 같은 이미지"""
    return f"https://picsum.photos/seed/{hash_string(prompt)[:12]}/800/600"


def estimate_generation_time(product_count: int, variation_count: int = 1) -> int:
    """예상 생성 시간 (초)"""
    return 30 + product_count * 5 + (max(variation_count, 1) - 1) * 20


def _inline_image_url(response: Any) -> Optional[str]:
    """응답의 첫 이미지 파트 → data: URL"""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline is not None else None
            if data:
                if isinstance(data, str):
                    encoded = data
                else:
                    encoded = base64.b64encode(data).decode("ascii")
                mime = getattr(inline, "mime_type", None) or "image/png"
                return f"data:{mime};base64,{encoded}"
    return None


class GeminiImageClient:
    """장면 이미지 제공자"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        variation_delay_s: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        if client is None and not self.api_key:
            raise ExternalAPIException("Gemini API key is required", "MISSING_API_KEY", retryable=False)
        self.client = client if client is not None else genai.Client(api_key=self.api_key)
        self.model = model or settings.gemini_image_model
        self.retry_config = retry_config or RetryConfig.from_settings()
        self.variation_delay_s = variation_delay_s
        self._sleep = sleep

    async def _generate_image(self, prompt: str) -> tuple[str, bool]:
        """(image_url, is_placeholder)"""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=f"Generate an image based on this description: {prompt}",
                config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
            )
        except Exception as e:
            raise map_gemini_error(e) from e

        image_url = _inline_image_url(response)
        if image_url:
            return image_url, False
        logger.info("[SCENE] no inline image in response, using placeholder")
        return placeholder_scene_url(prompt), True

    async def generate_scene(self, request: SceneRequest, variation: int = 1) -> SceneResult:
        """장면 1장 생성

        Raises:
            GhostSetupException: 재시도 후에도 생성 실패
        """
        prompt = build_scene_prompt(request)
        if variation > 1:
            prompt = add_variation(prompt, variation)
        image_url, is_placeholder = await with_retry(
            lambda: self._generate_image(prompt),
            self.retry_config,
            label=f"Gemini scene v{variation}",
        )
        return SceneResult(
            image_url=image_url,
            prompt=prompt,
            style=request.style,
            variation=variation,
            is_placeholder=is_placeholder,
        )

    async def generate_scene_variations(self, request: SceneRequest, count: int = 3) -> list[SceneResult]:
        """여러 장 생성 (순차, 실패한 장은 건너뜀)

        Raises:
            ExternalAPIException: 한 장도 생성하지 못함 (SCENE_GENERATION_FAILED)
        """
        count = max(1, min(count, MAX_VARIATIONS))
        scenes: list[SceneResult] = []
        for index in range(count):
            try:
                scenes.append(await self.generate_scene(request, variation=index + 1))
            except GhostSetupException as e:
                logger.warning(f"[SCENE] variation {index + 1} failed: {e}")
            if index < count - 1:
                # 연속 호출 rate limit 회피
                await self._sleep(self.variation_delay_s)

        if not scenes:
            raise ExternalAPIException(
                "Failed to generate any scene variations",
                "SCENE_GENERATION_FAILED",
                retryable=True,
            )
        return scenes
