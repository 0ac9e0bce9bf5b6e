from starlette.requests import Request

from opportunity_hub.services.ingest_auth import token_from_request, tokens_match


def _request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/internships/ingest",
        "headers": [(key.lower().encode("latin-1"), value.encode("latin-1")) for key, value in headers.items()],
    }
    return Request(scope)


def test_tokens_match_requires_identical_tokens() -> None:
    expected = "ingest-token-0123456789abcdef"
    assert tokens_match(expected, expected) is True
    assert tokens_match("ingest-token-0123456789abcdeX", expected) is False
    assert tokens_match(None, expected) is False
    assert tokens_match("", expected) is False


def test_tokens_match_rejects_inputs_equal_only_after_padding() -> None:
    expected = "abc"
    assert tokens_match("abc\0", expected) is False
    assert tokens_match("abc\0\0\0", expected) is False
    assert tokens_match("ab", "ab\0") is False
    assert tokens_match("abcd", expected) is False
    assert tokens_match("ab", expected) is False


def test_tokens_match_handles_non_ascii() -> None:
    assert tokens_match("tökén", "tökén") is True
    assert tokens_match("token", "tökén") is False


def test_token_is_read_from_bearer_then_custom_headers() -> None:
    assert token_from_request(_request({"Authorization": "Bearer  abc  "})) == "abc"
    assert token_from_request(_request({"authorization": "bearer abc"})) == "abc"
    assert token_from_request(_request({"X-Ingest-Token": " def "})) == "def"
    assert token_from_request(_request({"X-API-Key": "ghi"})) == "ghi"
    assert token_from_request(_request({"X-Ingest-Token": "def", "X-API-Key": "ghi"})) == "def"
    assert token_from_request(_request({"Authorization": "Basic xyz", "X-API-Key": "ghi"})) == "ghi"
    assert token_from_request(_request({})) is None
