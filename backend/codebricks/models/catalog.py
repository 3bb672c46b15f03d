"""
Catalog Models - enumerated choices offered by the flow forms.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


PROGRAMMING_LANGUAGES = {
    "javascript": "JavaScript",
    "python": "Python",
    "java": "Java",
    "csharp": "C#",
    "cpp": "C++",
    "php": "PHP",
    "ruby": "Ruby",
    "go": "Go",
    "swift": "Swift",
    "typescript": "TypeScript",
    "rust": "Rust",
    "kotlin": "Kotlin",
    "html": "HTML",
    "css": "CSS",
    "sql": "SQL",
    "plaintext": "Plain Text",
}

DEFAULT_LANGUAGE = "javascript"


class OptimizationGoal(str, Enum):
    PERFORMANCE = "performance"
    READABILITY = "readability"
    CONCISENESS = "conciseness"
    MODERNIZE = "modernize"
    GENERAL = "general"


OPTIMIZATION_GOAL_LABELS = {
    OptimizationGoal.PERFORMANCE: "Improve Performance",
    OptimizationGoal.READABILITY: "Enhance Readability",
    OptimizationGoal.CONCISENESS: "Reduce Code Length",
    OptimizationGoal.MODERNIZE: "Convert to Modern Syntax",
    OptimizationGoal.GENERAL: "General Optimization",
}


class TestingFramework(str, Enum):
    __test__ = False  # not a pytest test class

    JEST = "jest"
    PYTEST = "pytest"
    JUNIT = "junit"
    NUNIT = "nunit"
    PHPUNIT = "phpunit"
    RSPEC = "rspec"
    GOLANG_TEST = "golang_test"
    XCTEST = "xctest"
    MOCHA = "mocha"
    VITEST = "vitest"
    CYPRESS = "cypress"
    PLAYWRIGHT = "playwright"
    OTHER = "other"


TESTING_FRAMEWORK_LABELS = {
    TestingFramework.JEST: "Jest (JavaScript/TypeScript)",
    TestingFramework.PYTEST: "PyTest (Python)",
    TestingFramework.JUNIT: "JUnit (Java)",
    TestingFramework.NUNIT: "NUnit (C#)",
    TestingFramework.PHPUNIT: "PHPUnit (PHP)",
    TestingFramework.RSPEC: "RSpec (Ruby)",
    TestingFramework.GOLANG_TEST: "Go Testing Package",
    TestingFramework.XCTEST: "XCTest (Swift)",
    TestingFramework.MOCHA: "Mocha (JavaScript/TypeScript)",
    TestingFramework.VITEST: "Vitest (JavaScript/TypeScript)",
    TestingFramework.CYPRESS: "Cypress (E2E JavaScript/TypeScript)",
    TestingFramework.PLAYWRIGHT: "Playwright (E2E JavaScript/TypeScript)",
    TestingFramework.OTHER: "Other/Generic",
}

DEFAULT_TESTING_FRAMEWORK = TestingFramework.JEST


class AIModel(str, Enum):
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"


AI_MODEL_LABELS = {
    AIModel.GEMINI: "Gemini",
    AIModel.DEEPSEEK: "DeepSeek",
}


def normalize_language(value: str) -> str:
    """
    Normalize a language tag and check it against the catalog.

    Raises:
        ValueError: If the language is not offered
    """
    language = (value or "").strip().lower()
    if not language:
        raise ValueError("Please select a language.")
    if language not in PROGRAMMING_LANGUAGES:
        raise ValueError(f"Unsupported language: {value}")
    return language


class CatalogOption(BaseModel):
    value: str
    label: str
    available: Optional[bool] = None


class Catalog(BaseModel):
    """Choices for the language, goal, framework and model dropdowns."""
    languages: List[CatalogOption]
    default_language: str = DEFAULT_LANGUAGE
    optimization_goals: List[CatalogOption]
    testing_frameworks: List[CatalogOption]
    default_testing_framework: str = DEFAULT_TESTING_FRAMEWORK.value
    ai_models: List[CatalogOption]
