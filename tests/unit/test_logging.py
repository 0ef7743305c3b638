"""로그 정리 유틸리티 테스트"""

from ghost_setup.core.logging import sanitize_for_log


def test_query_secrets_are_masked_in_place():
    value = "https://serpapi.com/search.json?q=desk&api_key=abc123&num=10"

    assert sanitize_for_log(value) == "https://serpapi.com/search.json?q=desk&api_key=***&num=10"


def test_other_secret_words_mask_everything():
    assert sanitize_for_log("redis password hunter2") == "***"


def test_empty_and_truncated():
    assert sanitize_for_log("") == "[empty]"
    assert sanitize_for_log("x" * 150, max_length=10) == "x" * 10 + "..."
