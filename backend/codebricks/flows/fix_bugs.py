"""Identify and fix bugs in a code snippet."""

from typing import Optional

from pydantic import Field

from .base import FlowModel, Language, NonEmptyStr, PromptFlow


class FixBugsInput(FlowModel):
    code_snippet: NonEmptyStr
    language: Language


class FixBugsOutput(FlowModel):
    bug_identification: NonEmptyStr = Field(..., description="Description of the bug found.")
    suggested_fix: NonEmptyStr = Field(..., description="How to fix the bug.")
    fixed_code_snippet: Optional[str] = Field(
        None, description="The corrected code, only if a bug was found and fixed."
    )


TEMPLATE = """You are an expert software developer specializing in debugging.

Analyze the code below and identify any bugs, including syntax errors.
Then suggest a fix. If no bug is found, say so explicitly in both the
identification and the suggestion, and leave out the fixed code.

Language: {{ language }}
Code:
```{{ language }}
{{ code_snippet }}
```"""


fix_bugs_flow = PromptFlow(
    name="fix-bugs",
    input_model=FixBugsInput,
    output_model=FixBugsOutput,
    template=TEMPLATE,
)
