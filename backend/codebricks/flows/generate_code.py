"""Generate code from a natural-language description."""

from pydantic import Field

from .base import FlowModel, Language, NonEmptyStr, PromptFlow


class GenerateCodeInput(FlowModel):
    prompt: str = Field(..., min_length=10, description="What the code should do.")
    language: Language


class GenerateCodeOutput(FlowModel):
    code: NonEmptyStr = Field(..., description="The generated code, without markdown fences.")


TEMPLATE = """You are an expert {{ language }} developer.
Write {{ language }} code that does the following:

{{ prompt }}

Return complete, working code. Put any explanation in code comments only."""


generate_code_flow = PromptFlow(
    name="generate-code",
    input_model=GenerateCodeInput,
    output_model=GenerateCodeOutput,
    template=TEMPLATE,
)
