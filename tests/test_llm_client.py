import json
import os
import threading
import time
from unittest.mock import Mock, patch

import pytest

from backend.config import Config
from backend.errors import CandidateTransportError, ExtractionError, PreconditionError
from backend.services.llm_client import (
    LLMClient,
    check_credentials,
    extract_json_payload,
    parse_candidate,
    parse_json_payload,
    preview,
)

# Helper to check env keys
HAS_OPENAI = bool(os.getenv("OPENAI_API_KEY"))
HAS_GEMINI = bool(os.getenv("GEMINI_API_KEY"))


class TestCandidates:
    """Test candidate identifiers and credential preconditions"""

    @pytest.mark.parametrize("candidate,expected", [
        ("gemini-2.0-flash", ("gemini", "gemini-2.0-flash")),
        ("gemini:gemini-2.5-flash", ("gemini", "gemini-2.5-flash")),
        ("openai:gpt-4o-mini", ("openai", "gpt-4o-mini")),
        ("OpenAI: gpt-4o ", ("openai", "gpt-4o")),
    ])
    def test_parse_candidate(self, candidate, expected):
        assert parse_candidate(candidate) == expected

    def test_credentials_present(self):
        cfg = Config(GEMINI_API_KEY="g", OPENAI_API_KEY="o")
        check_credentials(cfg, ["gemini-2.0-flash", "openai:gpt-4o-mini"])

    def test_missing_gemini_key(self):
        with pytest.raises(PreconditionError, match="GEMINI_API_KEY is not set"):
            check_credentials(Config(), ["gemini-2.0-flash"])

    def test_missing_openai_key_for_fallback_candidate(self):
        cfg = Config(GEMINI_API_KEY="g")
        with pytest.raises(PreconditionError, match="OPENAI_API_KEY is not set"):
            check_credentials(cfg, ["gemini-2.0-flash", "openai:gpt-4o-mini"])

    def test_unknown_provider(self):
        with pytest.raises(PreconditionError, match="Unsupported provider"):
            check_credentials(Config(GEMINI_API_KEY="g"), ["claude:some-model"])

    def test_empty_candidate_list(self):
        with pytest.raises(PreconditionError):
            check_credentials(Config(GEMINI_API_KEY="g"), [])


class TestJsonExtraction:
    """Test reducing model replies to JSON"""

    def test_json_fenced_block(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nHope that helps.'
        assert extract_json_payload(text) == '{"a": 1}'

    def test_plain_fenced_block(self):
        text = 'Result:\n```\n{"a": [1, 2]}\n```'
        assert extract_json_payload(text) == '{"a": [1, 2]}'

    def test_json_fence_preferred_over_earlier_plain_fence(self):
        text = '```\nnot this\n```\n```json\n{"b": 2}\n```'
        assert extract_json_payload(text) == '{"b": 2}'

    def test_unfenced_text(self):
        assert extract_json_payload('{"a": 1}') == '{"a": 1}'

    def test_empty_fence_falls_back_to_text(self):
        assert extract_json_payload("```json```") == "```json```"

    def test_clean_and_fenced_parse_the_same(self, valid_json):
        fenced = f"```json\n{valid_json}\n```"
        assert parse_json_payload(valid_json) == parse_json_payload(fenced)
        assert parse_json_payload(valid_json) == json.loads(valid_json)

    def test_invalid_json(self):
        with pytest.raises(ExtractionError, match="invalid JSON") as exc:
            parse_json_payload("```json\n{\"a\": }\n```", candidate="model-a")
        assert exc.value.candidate == "model-a"

    def test_empty_text(self):
        with pytest.raises(ExtractionError):
            parse_json_payload("")

    @pytest.mark.parametrize("text", ['{"x": ' + "1" * 5000 + "}", "[" * 200000 + "]" * 200000])
    def test_decoder_limits_are_extraction_errors(self, text):
        with pytest.raises(ExtractionError, match="invalid JSON") as exc:
            parse_json_payload(text, candidate="model-a")
        assert exc.value.candidate == "model-a"

    def test_preview(self):
        assert preview("abc", limit=5) == "abc"
        assert preview("abcdefgh", limit=5) == "abcde..."
        assert preview(None) == ""


class TestLLMClient:
    """Test provider dispatch and error wrapping"""

    def test_generate_routes_to_gemini(self):
        client = LLMClient(Config(GEMINI_API_KEY="g"))
        with patch.object(LLMClient, "_generate_gemini", return_value="{}") as mock_gemini:
            assert client.generate("gemini-2.0-flash", "prompt") == "{}"
        mock_gemini.assert_called_once_with("gemini-2.0-flash", "prompt")

    def test_generate_routes_to_openai(self):
        client = LLMClient(Config(OPENAI_API_KEY="o"))
        with patch.object(LLMClient, "_generate_openai", return_value="{}") as mock_openai:
            client.generate("openai:gpt-4o-mini", "prompt")
        mock_openai.assert_called_once_with("gpt-4o-mini", "prompt")

    def test_sdk_error_becomes_transport_error(self):
        client = LLMClient(Config(GEMINI_API_KEY="g"))
        with patch.object(LLMClient, "_generate_gemini", side_effect=RuntimeError("429 quota exceeded")):
            with pytest.raises(CandidateTransportError, match="quota exceeded") as exc:
                client.generate("gemini-2.0-flash", "prompt")
        assert exc.value.candidate == "gemini-2.0-flash"

    def test_empty_reply_is_transport_error(self):
        client = LLMClient(Config(GEMINI_API_KEY="g"))
        with patch.object(LLMClient, "_generate_gemini", return_value="   "):
            with pytest.raises(CandidateTransportError, match="empty response"):
                client.generate("gemini-2.0-flash", "prompt")

    def test_unsupported_provider_is_transport_error(self):
        client = LLMClient(Config())
        with pytest.raises(CandidateTransportError):
            client.generate("claude:x", "prompt")

    def test_gemini_sdk_call(self):
        cfg = Config(GEMINI_API_KEY="g", LLM_TIMEOUT_SECS=30, LLM_TEMPERATURE=0.0, LLM_MAX_OUTPUT_TOKENS=100)
        sdk = Mock()
        sdk.models.generate_content.return_value = Mock(text='{"ok": true}')
        with patch("google.genai.Client", return_value=sdk) as mock_ctor:
            client = LLMClient(cfg)
            assert client.generate("gemini-2.0-flash", "prompt") == '{"ok": true}'
            client.generate("gemini-2.5-flash", "prompt")

        # SDK client is built once per LLMClient
        mock_ctor.assert_called_once()
        assert mock_ctor.call_args.kwargs["api_key"] == "g"
        assert mock_ctor.call_args.kwargs["http_options"].timeout == 30000
        kwargs = sdk.models.generate_content.call_args_list[0].kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert kwargs["contents"] == "prompt"

    def test_sdk_client_built_once_across_threads(self):
        client = LLMClient(Config(GEMINI_API_KEY="g"))
        built = []

        def slow_ctor(**kwargs):
            time.sleep(0.05)
            built.append(kwargs)
            return Mock()

        with patch("google.genai.Client", side_effect=slow_ctor):
            threads = [threading.Thread(target=client._gemini) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        assert len(built) == 1

    def test_openai_sdk_call(self):
        cfg = Config(OPENAI_API_KEY="o", LLM_TIMEOUT_SECS=30)
        sdk = Mock()
        message = Mock(content='{"ok": true}')
        sdk.chat.completions.create.return_value = Mock(choices=[Mock(message=message)])
        with patch("openai.OpenAI", return_value=sdk) as mock_ctor:
            client = LLMClient(cfg)
            assert client.generate("openai:gpt-4o-mini", "prompt") == '{"ok": true}'

        mock_ctor.assert_called_once_with(api_key="o", timeout=30)
        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]


@pytest.mark.parametrize("provider_key,candidate", [("gemini", "gemini-2.0-flash"), ("openai", "openai:gpt-4o-mini")])
def test_generate_live_smoke(provider_key, candidate):
    """
    Live smoke test: only runs when the provider's API key is present.
    """
    if provider_key == "openai" and not HAS_OPENAI:
        pytest.skip("OPENAI_API_KEY not set; skipping OpenAI test")
    if provider_key == "gemini" and not HAS_GEMINI:
        pytest.skip("GEMINI_API_KEY not set; skipping Gemini test")

    client = LLMClient(Config.from_env())
    text = client.generate(candidate, 'Return ONLY this JSON: {"phones": ["a", "b"]}')

    assert isinstance(text, str) and text.strip()
    assert parse_json_payload(text) == {"phones": ["a", "b"]}
