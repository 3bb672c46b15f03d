"""Explain a code snippet in plain English."""

from pydantic import Field

from .base import FlowModel, Language, NonEmptyStr, PromptFlow


class ExplainCodeInput(FlowModel):
    code_snippet: NonEmptyStr
    programming_language: Language


class ExplainCodeOutput(FlowModel):
    explanation: NonEmptyStr = Field(
        ..., description="Markdown explanation of the code for a junior developer."
    )


TEMPLATE = """You are an expert software developer who explains code to junior developers.

Explain the following {{ programming_language }} code in plain English.
1. **Overall purpose:** start with a short summary of what the code does.
2. **Key components:** walk through the main parts and what each is responsible for.
3. **Clarity:** use simple language and explain any jargon you cannot avoid.
4. **Formatting:** use markdown headings, bullet points and bold text.

Code:
```{{ programming_language }}
{{ code_snippet }}
```"""


explain_code_flow = PromptFlow(
    name="explain-code",
    input_model=ExplainCodeInput,
    output_model=ExplainCodeOutput,
    template=TEMPLATE,
)
