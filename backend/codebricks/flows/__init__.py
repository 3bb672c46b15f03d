"""Flows module - one templated model call per assistant feature."""

from .base import PromptFlow, FlowModel, extract_json
from .generate_code import generate_code_flow, GenerateCodeInput, GenerateCodeOutput
from .explain_code import explain_code_flow, ExplainCodeInput, ExplainCodeOutput
from .fix_bugs import fix_bugs_flow, FixBugsInput, FixBugsOutput
from .optimize_code import optimize_code_flow, OptimizeCodeInput, OptimizeCodeOutput
from .generate_unit_tests import (
    generate_unit_tests_flow,
    GenerateUnitTestsInput,
    GenerateUnitTestsOutput,
)
from .chat import chat_flow, ChatHistoryItem, ChatWithAiInput, ChatWithAiOutput

# Code flows exposed under /flows/<name>; chat has its own router
CODE_FLOWS = {
    flow.name: flow
    for flow in (
        generate_code_flow,
        explain_code_flow,
        fix_bugs_flow,
        optimize_code_flow,
        generate_unit_tests_flow,
    )
}

__all__ = [
    'PromptFlow', 'FlowModel', 'extract_json', 'CODE_FLOWS',
    'generate_code_flow', 'GenerateCodeInput', 'GenerateCodeOutput',
    'explain_code_flow', 'ExplainCodeInput', 'ExplainCodeOutput',
    'fix_bugs_flow', 'FixBugsInput', 'FixBugsOutput',
    'optimize_code_flow', 'OptimizeCodeInput', 'OptimizeCodeOutput',
    'generate_unit_tests_flow', 'GenerateUnitTestsInput', 'GenerateUnitTestsOutput',
    'chat_flow', 'ChatHistoryItem', 'ChatWithAiInput', 'ChatWithAiOutput',
]
