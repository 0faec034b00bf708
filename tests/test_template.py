"""Tests for request templating and response text extraction."""
import json

from polyinfer.adapters.template import build_body, build_headers, extract_text
from polyinfer.config import ProviderConfig


def provider(**fields):
    data = {
        "name": "test",
        "api_url": "https://api.test.com",
        "request_structure": '{"prompt": "{input}"}',
    }
    data.update(fields)
    return ProviderConfig.model_validate(data)


class TestBuildBody:
    def test_replaces_placeholders(self):
        p = provider(request_structure='{"model": "{model}", "prompt": "{input}"}', model="gpt-4")

        assert build_body(p, "Hello world") == '{"model": "gpt-4", "prompt": "Hello world"}'

    def test_missing_model_becomes_empty_string(self):
        p = provider(request_structure='{"model": "{model}", "prompt": "{input}"}')

        assert build_body(p, "Test") == '{"model": "", "prompt": "Test"}'

    def test_input_is_json_escaped(self):
        p = provider()
        text = 'He said "hi"\nthen \\left'

        body = build_body(p, text)

        assert json.loads(body) == {"prompt": text}

    def test_every_occurrence_is_replaced(self):
        p = provider(request_structure='{"a": "{input}", "b": "{input}"}')

        assert json.loads(build_body(p, "x")) == {"a": "x", "b": "x"}


class TestBuildHeaders:
    def test_default_bearer_header_when_key_present(self):
        headers = build_headers(provider(), "secret")

        assert headers == {"content-type": "application/json", "authorization": "Bearer secret"}

    def test_no_key_no_authorization(self):
        assert build_headers(provider(), None) == {"content-type": "application/json"}

    def test_placeholder_receives_key(self):
        p = provider(request_header={"x-api-key": "{api_key}", "anthropic-version": "2023-06-01"})

        headers = build_headers(p, "secret")

        assert headers["x-api-key"] == "secret"
        assert headers["anthropic-version"] == "2023-06-01"
        assert "authorization" not in headers

    def test_placeholder_dropped_without_key(self):
        p = provider(request_header={"x-api-key": "{api_key}"})

        assert "x-api-key" not in build_headers(p, None)

    def test_explicit_authorization_header_is_kept(self):
        p = provider(request_header={"Authorization": "Token fixed"})

        headers = build_headers(p, "secret")

        assert headers["Authorization"] == "Token fixed"
        assert "authorization" not in headers

    def test_configured_content_type_replaces_default(self):
        p = provider(request_header={"Content-Type": "application/json; charset=utf-8"})

        headers = build_headers(p, "secret")

        assert [name for name in headers if name.lower() == "content-type"] == ["Content-Type"]
        assert headers["Content-Type"] == "application/json; charset=utf-8"
        assert headers["authorization"] == "Bearer secret"


class TestExtractText:
    def test_bracket_path(self):
        response = {"choices": [{"message": {"content": "Extracted text"}}]}

        assert extract_text(response, "choices[0].message.content") == "Extracted text"

    def test_simple_path(self):
        assert extract_text({"response": "Simple text"}, "response") == "Simple text"

    def test_nested_arrays(self):
        response = {"results": [{"output": "First"}, {"output": "Second"}]}

        assert extract_text(response, "results[1].output") == "Second"

    def test_invalid_path(self):
        assert extract_text({"data": "text"}, "invalid.path") is None

    def test_index_out_of_range(self):
        assert extract_text({"results": []}, "results[3].output") is None

    def test_object_with_content_field(self):
        response = {"message": {"role": "assistant", "content": "hi"}}

        assert extract_text(response, "message") == "hi"

    def test_non_string_leaf(self):
        assert extract_text({"count": 3}, "count") is None

    def test_heuristics_without_path(self):
        assert extract_text({"choices": [{"message": {"content": "chat"}}]}) == "chat"
        assert extract_text({"choices": [{"text": "completion"}]}) == "completion"
        assert extract_text({"content": [{"text": "claude"}]}) == "claude"
        assert extract_text({"result": {"content": "result"}}) == "result"
        assert extract_text("plain body") == "plain body"

    def test_heuristics_find_nothing(self):
        assert extract_text({"data": "text"}) is None

    def test_empty_response(self):
        assert extract_text(None, "text") is None
        assert extract_text({}, None) is None
