"""Shared constants for generation prompts and catalogues."""

from __future__ import annotations

CONTENT_CHAR_LIMIT = 3000
CASES_PER_FILE = 4
MAX_TEST_CASES = 12

COMPLEXITY_GUIDANCE: dict[str, str] = {
    "simple": "Keep tests short and focused on the main happy path of each unit.",
    "medium": "Cover the main behaviour plus the most likely failure modes.",
    "complex": "Cover branches, boundary values, error propagation and interactions between units.",
    "adaptive": "Scale depth to each file: simple helpers get brief tests, core logic gets thorough ones.",
}

FRAMEWORK_CATALOGUE: dict[str, list[dict[str, object]]] = {
    "javascript": [
        {"name": "jest", "description": "Delightful JavaScript Testing Framework", "popular": True},
        {"name": "mocha", "description": "Feature-rich JavaScript test framework", "popular": True},
        {"name": "jasmine", "description": "Behavior-driven development framework", "popular": False},
        {"name": "cypress", "description": "End-to-end testing framework", "popular": True},
        {"name": "playwright", "description": "Cross-browser end-to-end testing", "popular": True},
    ],
    "typescript": [
        {"name": "jest", "description": "With TypeScript support", "popular": True},
        {"name": "vitest", "description": "Vite-native unit test framework", "popular": True},
        {"name": "cypress", "description": "TypeScript-first E2E testing", "popular": True},
    ],
    "python": [
        {"name": "pytest", "description": "The pytest framework", "popular": True},
        {"name": "unittest", "description": "Python built-in testing framework", "popular": True},
        {"name": "nose2", "description": "Successor to nose testing framework", "popular": False},
    ],
    "java": [
        {"name": "junit", "description": "Most popular Java testing framework", "popular": True},
        {"name": "testng", "description": "Testing framework inspired by JUnit", "popular": True},
        {"name": "mockito", "description": "Mocking framework for unit tests", "popular": True},
    ],
    "go": [
        {"name": "testing", "description": "Go built-in testing package", "popular": True},
        {"name": "testify", "description": "Toolkit with common assertions", "popular": True},
        {"name": "ginkgo", "description": "BDD testing framework", "popular": False},
    ],
    "rust": [
        {"name": "built-in", "description": "Rust built-in test framework", "popular": True},
        {"name": "criterion", "description": "Statistics-driven benchmarking", "popular": True},
    ],
    "csharp": [
        {"name": "nunit", "description": "Unit-testing framework for .NET", "popular": True},
        {"name": "xunit", "description": "Free, open source testing tool", "popular": True},
        {"name": "mstest", "description": "Microsoft testing framework", "popular": True},
    ],
}

TEST_TYPE_CATALOGUE: dict[str, dict[str, object]] = {
    "unit": {
        "name": "Unit Tests",
        "description": "Test individual components or functions in isolation",
        "scope": "Small",
        "speed": "Fast",
    },
    "integration": {
        "name": "Integration Tests",
        "description": "Test the interaction between integrated components",
        "scope": "Medium",
        "speed": "Medium",
    },
    "e2e": {
        "name": "End-to-End Tests",
        "description": "Test complete user workflows from start to finish",
        "scope": "Large",
        "speed": "Slow",
    },
    "performance": {
        "name": "Performance Tests",
        "description": "Test system performance under various conditions",
        "scope": "Variable",
        "speed": "Variable",
    },
    "security": {
        "name": "Security Tests",
        "description": "Test for security vulnerabilities and threats",
        "scope": "Variable",
        "speed": "Variable",
    },
    "api": {
        "name": "API Tests",
        "description": "Test request and response contracts of exposed endpoints",
        "scope": "Medium",
        "speed": "Medium",
    },
    "database": {
        "name": "Database Tests",
        "description": "Test queries, migrations and persistence behaviour",
        "scope": "Medium",
        "speed": "Medium",
    },
    "visual": {
        "name": "Visual Tests",
        "description": "Detect unintended changes in rendered output",
        "scope": "Large",
        "speed": "Slow",
    },
    "accessibility": {
        "name": "Accessibility Tests",
        "description": "Check that interfaces are usable with assistive technology",
        "scope": "Medium",
        "speed": "Medium",
    },
}


__all__ = [
    "CASES_PER_FILE",
    "COMPLEXITY_GUIDANCE",
    "CONTENT_CHAR_LIMIT",
    "FRAMEWORK_CATALOGUE",
    "MAX_TEST_CASES",
    "TEST_TYPE_CATALOGUE",
]
