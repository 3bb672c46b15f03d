"""Optimize a code snippet toward a chosen goal."""

from pydantic import Field

from .base import FlowModel, Language, NonEmptyStr, PromptFlow
from ..models.catalog import OptimizationGoal


class OptimizeCodeInput(FlowModel):
    code_snippet: NonEmptyStr
    language: Language
    optimization_goal: OptimizationGoal = OptimizationGoal.GENERAL


class OptimizeCodeOutput(FlowModel):
    optimized_code: NonEmptyStr = Field(..., description="The improved code.")
    explanation: NonEmptyStr = Field(..., description="Markdown explanation of the changes.")


TEMPLATE = """You are an expert code optimizer. Improve the code below toward the given goal.

Language: {{ language }}
Optimization goal: {{ optimization_goal }}
{% if optimization_goal == "performance" %}
Focus on speed and efficiency.
{% elif optimization_goal == "readability" %}
Focus on clarity, naming and structure.
{% elif optimization_goal == "conciseness" %}
Reduce code length without sacrificing too much clarity.
{% elif optimization_goal == "modernize" %}
Convert the code to modern syntax and idioms for the language.
{% else %}
Make overall improvements to performance and readability.
{% endif %}

Code:
```{{ language }}
{{ code_snippet }}
```

Explain the optimizations you made in neat markdown."""


optimize_code_flow = PromptFlow(
    name="optimize-code",
    input_model=OptimizeCodeInput,
    output_model=OptimizeCodeOutput,
    template=TEMPLATE,
)
