"""
Prompt Flow - one templated round trip to the generative model.

A flow is parameterized by an input model, a Jinja2 prompt template and an
output model: validate input -> render prompt -> single model call ->
parse and validate the JSON reply -> return the typed result.
"""

import json
import logging
import re
from typing import Annotated, Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

import httpx
from jinja2 import Environment, StrictUndefined
from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..core.errors import (
    CodeBricksError,
    InputValidationError,
    ProviderError,
    ProviderUnavailableError,
)
from ..llm.base import LLMMessage, LLMProvider
from ..models.catalog import normalize_language
from ..utils.media import MediaPart

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)

_env = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)

_OUTPUT_INSTRUCTIONS = """Respond with a single JSON object and nothing else.
The object must match this JSON schema:
{schema}"""


class FlowModel(BaseModel):
    """Base for flow inputs and outputs: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


NonEmptyStr = Annotated[str, AfterValidator(_require_text)]
Language = Annotated[str, AfterValidator(normalize_language)]


def format_validation_errors(error: PydanticValidationError) -> str:
    """Turn pydantic errors into one readable line per field."""
    messages = []
    for err in error.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query"))
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{field}: {message}" if field else message)
    return "; ".join(messages)


def extract_json(text: str) -> Dict[str, Any]:
    """Extract a JSON object from text that may contain markdown fences."""
    text = text.strip()

    if text.startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            try:
                obj, _ = json.JSONDecoder().raw_decode(text)
                return obj
            except json.JSONDecodeError:
                pass

    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    try:
        start = text.index("{")
        obj, _ = json.JSONDecoder().raw_decode(text, idx=start)
        return obj
    except (ValueError, json.JSONDecodeError):
        pass

    raise ValueError(
        f"Could not extract JSON from model response (length={len(text)}). "
        f"First 300 chars: {text[:300]!r}"
    )


def _upstream_message(error: httpx.HTTPStatusError) -> str:
    """Best-effort error message from a provider error body."""
    try:
        body = error.response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("error")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str):
            return detail
    return f"The AI model responded with HTTP {error.response.status_code}."


class PromptFlow(Generic[InputT, OutputT]):
    """A single templated call to the generative model."""

    def __init__(
        self,
        name: str,
        input_model: Type[InputT],
        output_model: Type[OutputT],
        template: str,
        system_prompt: Optional[str] = None,
        media: Optional[Callable[[InputT], List[MediaPart]]] = None,
        extra_context: Optional[Callable[[InputT], Dict[str, Any]]] = None,
        shortcut: Optional[Callable[[InputT], Optional[OutputT]]] = None,
        temperature: Optional[float] = None,
    ):
        """
        Args:
            name: Flow name used in routes and logs
            input_model: Pydantic model validating the flow input
            output_model: Pydantic model the model reply must satisfy
            template: Jinja2 prompt template rendered with the input's fields
            system_prompt: Optional system instruction
            media: Extracts inline images/audio from the input
            extra_context: Additional template variables derived from the input
            shortcut: Returns a result without calling the model, or None
            temperature: Sampling temperature override
        """
        self.name = name
        self.input_model = input_model
        self.output_model = output_model
        self.system_prompt = system_prompt
        self.temperature = temperature
        self._template = _env.from_string(template)
        self._media = media
        self._extra_context = extra_context
        self._shortcut = shortcut
        self._schema = json.dumps(output_model.model_json_schema(by_alias=True), indent=2)

    def validate_input(self, data: Any) -> InputT:
        """
        Validate raw input against the input model.

        Raises:
            InputValidationError: If required fields are missing or invalid
        """
        if isinstance(data, self.input_model):
            return data
        try:
            return self.input_model.model_validate(data)
        except PydanticValidationError as e:
            raise InputValidationError(format_validation_errors(e)) from e

    def render_prompt(self, flow_input: InputT) -> str:
        context = flow_input.model_dump(mode="json")
        if self._extra_context:
            context.update(self._extra_context(flow_input))
        body = self._template.render(**context).strip()
        return f"{body}\n\n{_OUTPUT_INSTRUCTIONS.format(schema=self._schema)}"

    def collect_media(self, flow_input: InputT) -> List[MediaPart]:
        return self._media(flow_input) if self._media else []

    def build_messages(self, flow_input: InputT) -> List[LLMMessage]:
        messages: List[LLMMessage] = []
        if self.system_prompt:
            messages.append(LLMMessage.text("system", self.system_prompt))

        prompt = self.render_prompt(flow_input)
        media = self.collect_media(flow_input)
        if media:
            messages.append(LLMMessage.multimodal("user", prompt, media=media))
        else:
            messages.append(LLMMessage.text("user", prompt))
        return messages

    def parse_output(self, text: str) -> OutputT:
        """
        Parse and validate the model's reply.

        Raises:
            ProviderError: If the reply is not JSON or misses required fields
        """
        try:
            data = extract_json(text)
        except ValueError as e:
            raise ProviderError(f"The AI model returned a malformed response. {e}") from e
        try:
            return self.output_model.model_validate(data)
        except PydanticValidationError as e:
            raise ProviderError(
                f"The AI model response did not match the expected format: "
                f"{format_validation_errors(e)}"
            ) from e

    @staticmethod
    def _check_capabilities(provider: LLMProvider, messages: List[LLMMessage]) -> None:
        if not provider.supports_images and any(m.has_media("image") for m in messages):
            raise InputValidationError(f"The {provider.name} model does not accept image input.")
        if not provider.supports_audio and any(m.has_media("audio") for m in messages):
            raise InputValidationError(f"The {provider.name} model does not accept audio input.")

    async def run(self, provider: Optional[LLMProvider], data: Any) -> OutputT:
        """
        Run the flow once. No retries.

        Args:
            provider: LLM provider to call, or None if the model is not configured
            data: Flow input as a model instance or a dict

        Returns:
            Validated output model

        Raises:
            InputValidationError: Invalid input, raised before any network call
            ProviderUnavailableError: Model not configured, overloaded or unavailable
            ProviderError: Any other model failure or malformed reply
        """
        flow_input = self.validate_input(data)

        if self._shortcut is not None:
            result = self._shortcut(flow_input)
            if result is not None:
                return result

        messages = self.build_messages(flow_input)

        if provider is None:
            raise ProviderUnavailableError(
                "The selected AI model is not configured. Set its API key to enable it."
            )
        self._check_capabilities(provider, messages)

        logger.debug(f"Running flow {self.name} with provider {provider.name}")

        try:
            response = await provider.chat_completion(
                messages, temperature=self.temperature, json_output=True
            )
        except CodeBricksError:
            raise
        except httpx.HTTPStatusError as e:
            message = _upstream_message(e)
            if e.response.status_code in (429, 503):
                raise ProviderUnavailableError(message) from e
            raise ProviderError(message) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Could not reach the AI model: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"The AI model returned a malformed response: {e}") from e

        result = self.parse_output(response.content)
        logger.info(
            f"Flow {self.name} completed",
            extra={"extra_fields": {
                "flow": self.name,
                "provider": provider.name,
                "model": response.model,
                "total_tokens": response.usage.get("total_tokens", 0),
            }}
        )
        return result
