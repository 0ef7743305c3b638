"""Gemini 제공자 테스트 (google-genai 클라이언트는 Fake로 대체)

- 응답 파싱: 코드블록/설명 섞인 JSON, 잘못된 인덱스, 파싱 실패 시 대체 동작
- 에러 매핑: 429/5xx/기타
- 장면 이미지: 인라인 이미지, 플레이스홀더, 변형 순차 생성
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from ghost_setup.core.exceptions import ErrorType, ExternalAPIException, RateLimitException
from ghost_setup.providers.gemini import GeminiClient, build_selection_prompt, map_gemini_error
from ghost_setup.providers.gemini_image import (
    GeminiImageClient,
    estimate_generation_time,
    infer_room_type,
    placeholder_scene_url,
)
from ghost_setup.providers.gemini_parsing import (
    ResponseParseError,
    extract_json,
    parse_plan_response,
    parse_product_selection,
    parse_rank_response,
)
from ghost_setup.schemas.api_schema import SceneRequest
from ghost_setup.schemas.product_schema import (
    Need,
    PlanRequest,
    Product,
    RankingCriteria,
    RankRequest,
    UserPreferences,
)


class FakeAPIError(Exception):
    """google.genai.errors.APIError 흉내 (code/status 속성)"""

    def __init__(self, code: int, status: str, message: str = "error"):
        super().__init__(f"{code} {status}. {message}")
        self.code = code
        self.status = status


def _fake_genai(*responses) -> SimpleNamespace:
    """client.aio.models.generate_content 만 가진 Fake"""
    generate = AsyncMock(side_effect=list(responses))
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate)))


def _text(payload) -> SimpleNamespace:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(text=text)


@pytest.fixture
def need() -> Need:
    return Need(key="chair", name="Office Chair", target_price=300, priority=2)


class TestExtractJson:
    def test_fenced_block(self):
        assert extract_json('Here you go:\n```json\n{"a": 1}\n```\nthanks') == {"a": 1}

    def test_bare_object_with_prose(self):
        assert extract_json('Sure! {"selectedIndex": 0} Hope this helps.') == {"selectedIndex": 0}

    @pytest.mark.parametrize("text", ["no json here", "{broken", ""])
    def test_invalid(self, text):
        with pytest.raises(ResponseParseError):
            extract_json(text)


class TestParsePlan:
    def test_categories_format(self):
        request = PlanRequest(query="gaming setup", budget=1000)
        text = json.dumps(
            {
                "approach": "setup",
                "categories": [
                    {"category": "Gaming Chair", "priority": 1, "budgetAllocation": 400, "searchTerms": ["gaming chair"]},
                    {"category": "Desk", "priority": 2, "budgetAllocation": 600},
                ],
                "budgetDistribution": [{"category": "Gaming Chair", "amount": 400, "percentage": 40, "color": "bad"}],
                "totalItems": 2,
            }
        )

        plan = parse_plan_response(text, request)

        assert [c.category for c in plan.categories] == ["Gaming Chair", "Desk"]
        assert plan.search_strategy.approach == "setup"
        assert plan.budget_distribution[0].color.startswith("#")

    def test_needs_format_clamps_target_to_budget(self):
        request = PlanRequest(query="home office", budget=500)
        text = json.dumps({"needs": [{"name": "Desk", "targetPrice": 900, "priority": 1, "rationale": "core"}]})

        plan = parse_plan_response(text, request)

        assert plan.categories[0].budget_allocation == 500
        assert plan.categories[0].requirements == ["core"]

    def test_garbage_falls_back_to_split(self):
        plan = parse_plan_response("I cannot help with that", PlanRequest(query="bedroom setup", budget=1000))

        assert [c.category for c in plan.categories] == ["Primary Item", "Secondary Items", "Accessories"]
        assert [c.budget_allocation for c in plan.categories] == [400, 350, 250]

    def test_garbage_single_item_falls_back_to_whole_budget(self):
        plan = parse_plan_response("nope", PlanRequest(query="standing desk", budget=300))

        assert len(plan.categories) == 1
        assert plan.categories[0].budget_allocation == 300
        assert plan.search_strategy.approach == "single"


class TestParseRank:
    def test_sorted_by_score_skipping_bad_indices(self, raw_product):
        products = [raw_product("a", 10.0), raw_product("b", 20.0), raw_product("c", 30.0)]
        text = json.dumps(
            {
                "rankings": [
                    {"productIndex": 0, "score": 50},
                    {"productIndex": 2, "score": 90, "rationale": "best", "confidence": 3},
                    {"productIndex": 7, "score": 99},
                    {"productIndex": 2, "score": 10},
                ],
                "reasoning": ["value first"],
            }
        )

        response = parse_rank_response(text, products)

        assert [p.id for p in response.ranked_products] == ["c", "a"]
        assert [p.search_rank for p in response.ranked_products] == [1, 2]
        assert response.ranked_products[0].confidence == 1.0
        assert response.reasoning == ["value first"]

    def test_unparseable_uses_heuristic(self, raw_product):
        products = [raw_product("a", 10.0)]

        response = parse_rank_response("???", products, UserPreferences(budget=100))

        assert [p.id for p in response.ranked_products] == ["a"]
        assert "heuristic" in response.reasoning[0]


class TestParseSelection:
    def test_valid_index(self, raw_product, need):
        products = [raw_product("a", 100.0), raw_product("b", 200.0)]
        text = '```json\n{"selectedIndex": 1, "rationale": "solid", "pros": ["sturdy"], "confidence": 0.9}\n```'

        product = parse_product_selection(text, products, need)

        assert product.id == "b"
        assert product.category == "Office Chair"
        assert product.search_rank == 2
        assert product.pros == ["sturdy"]

    @pytest.mark.parametrize("index", [-1, 2, "0"])
    def test_no_fit_or_bad_index_is_none(self, raw_product, need, index):
        products = [raw_product("a", 100.0), raw_product("b", 200.0)]

        assert parse_product_selection(json.dumps({"selectedIndex": index}), products, need) is None

    def test_no_json_raises(self, raw_product, need):
        with pytest.raises(ResponseParseError):
            parse_product_selection("nothing", [raw_product("a", 1.0)], need)


class TestMapGeminiError:
    def test_rate_limit(self):
        mapped = map_gemini_error(FakeAPIError(429, "RESOURCE_EXHAUSTED"))

        assert isinstance(mapped, RateLimitException)
        assert mapped.error_code == "GEMINI_RATE_LIMIT"

    def test_server_error_is_retryable(self):
        mapped = map_gemini_error(FakeAPIError(503, "UNAVAILABLE"))

        assert mapped.error_code == "GEMINI_503"
        assert mapped.retryable is True

    def test_client_error_is_not_retryable(self):
        mapped = map_gemini_error(FakeAPIError(400, "INVALID_ARGUMENT"))

        assert mapped.error_code == "GEMINI_ERROR"
        assert mapped.retryable is False

    def test_timeout_is_network(self):
        assert map_gemini_error(TimeoutError()).error_type == ErrorType.NETWORK_ERROR


class TestGeminiClient:
    def test_missing_key_without_client(self):
        with pytest.raises(ExternalAPIException) as exc_info:
            GeminiClient(api_key="")

        assert exc_info.value.error_code == "MISSING_API_KEY"

    @pytest.mark.asyncio
    async def test_generate_plan_retries_transient_errors(self, fast_retry):
        fake = _fake_genai(
            FakeAPIError(503, "UNAVAILABLE"),
            _text({"approach": "single", "categories": [{"category": "Desk", "budgetAllocation": 300}]}),
        )
        client = GeminiClient(client=fake, retry_config=fast_retry)

        plan = await client.generate_plan(PlanRequest(query="standing desk", budget=300))

        assert [c.category for c in plan.categories] == ["Desk"]
        assert fake.aio.models.generate_content.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_response_is_retried_then_raised(self, fast_retry):
        fake = _fake_genai(*[SimpleNamespace(text="")] * 3)
        client = GeminiClient(client=fake, retry_config=fast_retry)

        with pytest.raises(ExternalAPIException) as exc_info:
            await client.generate_plan(PlanRequest(query="standing desk", budget=300))

        assert exc_info.value.error_code == "EMPTY_RESPONSE"
        assert fake.aio.models.generate_content.await_count == fast_retry.max_retries + 1

    @pytest.mark.asyncio
    async def test_rank_falls_back_to_heuristic_on_failure(self, raw_product, fast_retry):
        fake = _fake_genai(FakeAPIError(400, "INVALID_ARGUMENT"))
        client = GeminiClient(client=fake, retry_config=fast_retry)
        request = RankRequest(products=[raw_product("a", 10.0)], user_preferences=UserPreferences(budget=100))

        response = await client.rank_products(request)

        assert [p.id for p in response.ranked_products] == ["a"]
        assert fake.aio.models.generate_content.await_count == 1

    @pytest.mark.asyncio
    async def test_zero_weights_prompt_matches_equal_weights(self, raw_product, fast_retry):
        """가중치가 모두 0인 요청은 0.25 균등 가중치와 같은 프롬프트를 보낸다"""
        ranking = _text({"rankings": [{"productIndex": 0, "score": 80}], "reasoning": ["ok"]})
        fake = _fake_genai(ranking, ranking)
        client = GeminiClient(client=fake, retry_config=fast_retry)
        products = [raw_product("a", 10.0)]
        preferences = UserPreferences(budget=100)
        zero = RankingCriteria(price_weight=0, rating_weight=0, review_weight=0, relevance_weight=0)

        await client.rank_products(RankRequest(products=products, criteria=zero, user_preferences=preferences))
        await client.rank_products(
            RankRequest(products=products, criteria=RankingCriteria(), user_preferences=preferences)
        )

        calls = fake.aio.models.generate_content.await_args_list
        assert calls[0].kwargs["contents"] == calls[1].kwargs["contents"]
        assert "- Price Value: 25%" in calls[0].kwargs["contents"]

    @pytest.mark.asyncio
    async def test_select_best_product(self, raw_product, need, fast_retry):
        fake = _fake_genai(_text({"selectedIndex": 0, "rationale": "great value"}))
        client = GeminiClient(client=fake, retry_config=fast_retry)

        product = await client.select_best_product(need, [raw_product("a", 120.0)], budget=300, style="Casual")

        assert product.id == "a"
        assert product.rationale == "great value"

    def test_selection_prompt_uses_zero_based_labels(self, raw_product, need):
        prompt = build_selection_prompt(need, [raw_product("a", 120.0)], budget=300, style="Casual")

        assert '[0] "Product a"' in prompt
        assert "selectedIndex is zero-based" in prompt


def _scene_request(**overrides) -> SceneRequest:
    values = {
        "products": [
            Product(id="p1", title="RGB Gaming Chair", price=199.0),
            Product(id="p2", title="Gaming Desk", price=249.0),
        ],
        "style": "Gaming",
    }
    values.update(overrides)
    return SceneRequest(**values)


def _image_response(data: bytes = b"\x89PNG") -> SimpleNamespace:
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type="image/png"))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


class TestSceneGeneration:
    def test_room_type_inference(self):
        assert infer_room_type(_scene_request().products) == "gaming room"

    def test_estimate_generation_time(self):
        assert estimate_generation_time(2, 1) == 40
        assert estimate_generation_time(2, 3) == 80

    @pytest.mark.asyncio
    async def test_inline_image_becomes_data_url(self, fast_retry, no_sleep):
        client = GeminiImageClient(client=_fake_genai(_image_response()), retry_config=fast_retry, sleep=no_sleep)

        scene = await client.generate_scene(_scene_request())

        assert scene.image_url.startswith("data:image/png;base64,")
        assert scene.is_placeholder is False
        assert "gaming room" in scene.prompt

    @pytest.mark.asyncio
    async def test_text_only_response_uses_stable_placeholder(self, fast_retry, no_sleep):
        client = GeminiImageClient(
            client=_fake_genai(SimpleNamespace(candidates=[])), retry_config=fast_retry, sleep=no_sleep
        )

        scene = await client.generate_scene(_scene_request())

        assert scene.is_placeholder is True
        assert scene.image_url == placeholder_scene_url(scene.prompt)

    @pytest.mark.asyncio
    async def test_variations_skip_failures(self, fast_retry, no_sleep):
        fake = _fake_genai(_image_response(), FakeAPIError(400, "INVALID_ARGUMENT"), _image_response())
        client = GeminiImageClient(client=fake, retry_config=fast_retry, sleep=no_sleep)

        scenes = await client.generate_scene_variations(_scene_request(), count=3)

        assert [s.variation for s in scenes] == [1, 3]
        assert "Variation 3" in scenes[1].prompt

    @pytest.mark.asyncio
    async def test_all_variations_failing_raises(self, fast_retry, no_sleep):
        fake = _fake_genai(*[FakeAPIError(400, "INVALID_ARGUMENT")] * 2)
        client = GeminiImageClient(client=fake, retry_config=fast_retry, sleep=no_sleep)

        with pytest.raises(ExternalAPIException) as exc_info:
            await client.generate_scene_variations(_scene_request(), count=2)

        assert exc_info.value.error_code == "SCENE_GENERATION_FAILED"
