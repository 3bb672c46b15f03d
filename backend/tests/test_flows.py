"""
Unit tests for the prompt flows.
Providers are replaced by an in-memory fake, so no network calls are made.
"""

import httpx
import pytest

from codebricks.core.errors import InputValidationError, ProviderError, ProviderUnavailableError
from codebricks.flows import (
    chat_flow,
    explain_code_flow,
    extract_json,
    fix_bugs_flow,
    generate_code_flow,
    generate_unit_tests_flow,
    optimize_code_flow,
    FixBugsOutput,
)
from codebricks.flows.chat import EMPTY_INPUT_RESPONSE

from conftest import AUDIO_DATA_URI, PNG_DATA_URI, FakeProvider


def _status_error(status_code: int, body: dict) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://example.test/v1/chat")
    response = httpx.Response(status_code, json=body, request=request)
    return httpx.HTTPStatusError("upstream error", request=request, response=response)


class TestExtractJson:

    def test_bare_object(self):
        assert extract_json('{"code": "x = 1"}') == {"code": "x = 1"}

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"explanation": "adds numbers"}\n```'
        assert extract_json(text) == {"explanation": "adds numbers"}

    def test_embedded_object(self):
        assert extract_json('Sure! {"a": 1} hope this helps') == {"a": 1}

    def test_trailing_text_after_object(self):
        assert extract_json('{"a": 1}\nextra') == {"a": 1}

    def test_no_json_raises(self):
        with pytest.raises(ValueError, match="Could not extract JSON"):
            extract_json("no json here")


class TestInputValidation:

    @pytest.mark.asyncio
    async def test_missing_required_field(self):
        provider = FakeProvider()
        with pytest.raises(InputValidationError, match="codeSnippet|code_snippet"):
            await explain_code_flow.run(provider, {"programmingLanguage": "python"})
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_prompt_too_short(self):
        provider = FakeProvider()
        with pytest.raises(InputValidationError, match="prompt"):
            await generate_code_flow.run(provider, {"prompt": "short", "language": "python"})
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_blank_code_rejected(self):
        with pytest.raises(InputValidationError, match="must not be empty"):
            await fix_bugs_flow.run(FakeProvider(), {"codeSnippet": "   ", "language": "python"})

    def test_language_is_normalized(self):
        flow_input = fix_bugs_flow.validate_input({"codeSnippet": "x", "language": " Python "})
        assert flow_input.language == "python"

    def test_unknown_language_rejected(self):
        with pytest.raises(InputValidationError, match="Unsupported language"):
            fix_bugs_flow.validate_input({"codeSnippet": "x", "language": "cobol"})

    def test_unknown_testing_framework_rejected(self):
        with pytest.raises(InputValidationError, match="testingFramework|testing_framework"):
            generate_unit_tests_flow.validate_input({
                "codeToTest": "def f(): pass",
                "language": "python",
                "testingFramework": "nose",
            })

    def test_snake_case_names_accepted(self):
        flow_input = fix_bugs_flow.validate_input({"code_snippet": "x", "language": "go"})
        assert flow_input.code_snippet == "x"

    def test_invalid_image_data_uri(self):
        with pytest.raises(InputValidationError, match="data URI"):
            chat_flow.validate_input({"message": "hi", "imageDataUri": "not-a-data-uri"})

    def test_audio_in_image_slot_rejected(self):
        with pytest.raises(InputValidationError, match="image"):
            chat_flow.validate_input({"imageDataUri": AUDIO_DATA_URI})


class TestPromptRendering:

    def test_fix_bugs_prompt(self):
        flow_input = fix_bugs_flow.validate_input({
            "codeSnippet": "function add(a, b) { return a - b; }",
            "language": "javascript",
        })
        prompt = fix_bugs_flow.render_prompt(flow_input)
        assert "return a - b;" in prompt
        assert "javascript" in prompt
        assert "bugIdentification" in prompt
        assert "single JSON object" in prompt

    def test_optimize_defaults_to_general(self):
        flow_input = optimize_code_flow.validate_input({"codeSnippet": "x", "language": "python"})
        assert flow_input.optimization_goal.value == "general"
        assert "overall improvements" in optimize_code_flow.render_prompt(flow_input)

    def test_optimize_goal_specific_instruction(self):
        flow_input = optimize_code_flow.validate_input({
            "codeSnippet": "x", "language": "python", "optimizationGoal": "performance",
        })
        assert "speed and efficiency" in optimize_code_flow.render_prompt(flow_input)

    def test_unit_tests_framework_label(self):
        flow_input = generate_unit_tests_flow.validate_input({
            "codeToTest": "def f(): pass",
            "language": "python",
            "testingFramework": "pytest",
        })
        assert "PyTest (Python)" in generate_unit_tests_flow.render_prompt(flow_input)

    def test_chat_prompt_includes_history(self):
        flow_input = chat_flow.validate_input({
            "history": [
                {"sender": "user", "text": "What is a closure?"},
                {"sender": "assistant", "text": "A function with captured state."},
            ],
            "message": "Show an example",
        })
        prompt = chat_flow.render_prompt(flow_input)
        assert "user: What is a closure?" in prompt
        assert "assistant: A function with captured state." in prompt
        assert "Text: Show an example" in prompt


class TestFlowRun:

    @pytest.mark.asyncio
    async def test_fix_bugs_returns_typed_result(self):
        provider = FakeProvider().reply_with({
            "bugIdentification": "The function subtracts instead of adding.",
            "suggestedFix": "Use + instead of -.",
            "fixedCodeSnippet": "function add(a, b) { return a + b; }",
        })

        result = await fix_bugs_flow.run(provider, {
            "codeSnippet": "function add(a, b) { return a - b; }",
            "language": "javascript",
        })

        assert isinstance(result, FixBugsOutput)
        assert result.bug_identification
        assert result.suggested_fix
        assert "a + b" in result.fixed_code_snippet
        assert len(provider.calls) == 1
        assert provider.calls[0]["json_output"] is True

    @pytest.mark.asyncio
    async def test_fixed_code_is_optional(self):
        provider = FakeProvider().reply_with({
            "bugIdentification": "No bug found.",
            "suggestedFix": "No fix needed.",
        })
        result = await fix_bugs_flow.run(provider, {"codeSnippet": "x = 1", "language": "python"})
        assert result.fixed_code_snippet is None

    @pytest.mark.asyncio
    async def test_fenced_reply_is_parsed(self):
        provider = FakeProvider(content='```json\n{"code": "print(1)"}\n```')
        result = await generate_code_flow.run(provider, {
            "prompt": "print the number one",
            "language": "python",
        })
        assert result.code == "print(1)"

    @pytest.mark.asyncio
    async def test_malformed_reply_raises_provider_error(self):
        provider = FakeProvider(content="I cannot help with that.")
        with pytest.raises(ProviderError, match="malformed"):
            await explain_code_flow.run(provider, {
                "codeSnippet": "x = 1", "programmingLanguage": "python",
            })

    @pytest.mark.asyncio
    async def test_reply_missing_field_raises_provider_error(self):
        provider = FakeProvider().reply_with({"optimizedCode": "x"})
        with pytest.raises(ProviderError, match="explanation"):
            await optimize_code_flow.run(provider, {"codeSnippet": "x", "language": "python"})

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self):
        with pytest.raises(ProviderUnavailableError, match="not configured"):
            await explain_code_flow.run(None, {
                "codeSnippet": "x = 1", "programmingLanguage": "python",
            })

    @pytest.mark.asyncio
    async def test_invalid_input_checked_before_provider(self):
        with pytest.raises(InputValidationError):
            await explain_code_flow.run(None, {"codeSnippet": "x = 1"})

    @pytest.mark.asyncio
    async def test_overloaded_provider(self):
        provider = FakeProvider(error=_status_error(
            503, {"error": {"message": "The model is overloaded. Please try again later."}}
        ))
        with pytest.raises(ProviderUnavailableError, match="overloaded"):
            await explain_code_flow.run(provider, {
                "codeSnippet": "x = 1", "programmingLanguage": "python",
            })

    @pytest.mark.asyncio
    async def test_rate_limited_provider(self):
        provider = FakeProvider(error=_status_error(429, {}))
        with pytest.raises(ProviderUnavailableError, match="HTTP 429"):
            await explain_code_flow.run(provider, {
                "codeSnippet": "x = 1", "programmingLanguage": "python",
            })

    @pytest.mark.asyncio
    async def test_upstream_error_message_surfaced(self):
        provider = FakeProvider(error=_status_error(400, {"error": {"message": "API key not valid."}}))
        with pytest.raises(ProviderError) as exc_info:
            await explain_code_flow.run(provider, {
                "codeSnippet": "x = 1", "programmingLanguage": "python",
            })
        assert not isinstance(exc_info.value, ProviderUnavailableError)
        assert exc_info.value.description == "API key not valid."

    @pytest.mark.asyncio
    async def test_network_error(self):
        provider = FakeProvider(error=httpx.ConnectError("connection refused"))
        with pytest.raises(ProviderError, match="Could not reach"):
            await explain_code_flow.run(provider, {
                "codeSnippet": "x = 1", "programmingLanguage": "python",
            })


class TestChatFlow:

    @pytest.mark.asyncio
    async def test_empty_input_short_circuits(self):
        provider = FakeProvider()
        result = await chat_flow.run(provider, {})
        assert result.response == EMPTY_INPUT_RESPONSE
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_empty_input_without_provider(self):
        result = await chat_flow.run(None, {"message": "   "})
        assert result.response == EMPTY_INPUT_RESPONSE

    @pytest.mark.asyncio
    async def test_media_attached_to_request(self):
        provider = FakeProvider().reply_with({"response": "A cat."})
        result = await chat_flow.run(provider, {
            "history": [{"sender": "user", "text": "earlier", "imageDataUri": PNG_DATA_URI}],
            "message": "And this one?",
            "imageDataUri": PNG_DATA_URI,
            "audioDataUri": AUDIO_DATA_URI,
        })

        assert result.response == "A cat."
        messages = provider.calls[0]["messages"]
        assert messages[0].role == "system"
        blocks = messages[1].content
        assert [b["type"] for b in blocks] == ["image_url", "image_url", "input_audio", "text"]
        assert provider.calls[0]["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_image_rejected_for_text_only_model(self):
        provider = FakeProvider(name="deepseek", supports_images=False, supports_audio=False)
        with pytest.raises(InputValidationError, match="image"):
            await chat_flow.run(provider, {"message": "what is this?", "imageDataUri": PNG_DATA_URI})
        assert provider.calls == []
