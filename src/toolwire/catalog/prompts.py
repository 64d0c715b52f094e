"""Default prompts — code review and documentation templates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from toolwire.server.server import McpServer

REVIEW_FOCUS: dict[str, str] = {
    "security": "Focus on security flaws: input validation, injection, permission checks.",
    "performance": "Focus on performance: algorithmic complexity and resource usage.",
    "maintainability": "Focus on readability, structure and long-term maintainability.",
    "best_practices": "Focus on idiomatic style, conventions and design patterns.",
}
DEFAULT_REVIEW_FOCUS = "Give a complete review covering correctness, security, performance and maintainability."

DOC_TYPES: dict[str, str] = {
    "api": "Write API documentation: endpoints, parameters, return values and examples.",
    "class": "Write class documentation: purpose, attributes, methods and usage examples.",
    "function": "Write function documentation: purpose, parameters, return value and examples.",
    "readme": "Write a README: introduction, installation, configuration and usage.",
}
DEFAULT_DOC_TYPE = "Write complete technical documentation."


def _user_message(text: str) -> list[dict[str, Any]]:
    return [{"role": "user", "content": [{"type": "text", "text": text}]}]


def code_review(args: dict[str, Any]) -> list[dict[str, Any]]:
    code = args["code"]
    language = args.get("language") or "python"
    focus = REVIEW_FOCUS.get(args.get("focus") or "general", DEFAULT_REVIEW_FOCUS)
    return _user_message(
        f"Please review the following {language} code. {focus}\n\n"
        f"Code:\n```{language}\n{code}\n```\n\n"
        "Include:\n"
        "1. Problems found and suggested improvements\n"
        "2. An overall quality assessment\n"
        "3. Concrete code changes\n"
        "4. Recommended best practices"
    )


def generate_docs(args: dict[str, Any]) -> list[dict[str, Any]]:
    code = args["code"]
    language = args.get("language") or "python"
    instructions = DOC_TYPES.get(args.get("type") or "api", DEFAULT_DOC_TYPE)
    return _user_message(
        f"Please write technical documentation for the following {language} code. {instructions}\n\n"
        f"Code:\n```{language}\n{code}\n```\n\n"
        "Provide:\n"
        "1. A clear description of what it does\n"
        "2. Parameters and return values\n"
        "3. Practical usage examples\n"
        "4. Caveats and best practices\n"
        "5. Error handling notes"
    )


def register_default_prompts(server: McpServer) -> None:
    server.register_prompt(
        "code_review",
        code_review,
        [
            {"name": "code", "description": "Code to review", "required": True},
            {"name": "language", "description": "Programming language (default: python)"},
            {
                "name": "focus",
                "description": "Review focus: general, security, performance, maintainability, best_practices",
            },
        ],
        "Generate a comprehensive code review prompt",
    )
    server.register_prompt(
        "generate_docs",
        generate_docs,
        [
            {"name": "code", "description": "Code to document", "required": True},
            {"name": "type", "description": "Documentation type: api, class, function, readme"},
            {"name": "language", "description": "Programming language (default: python)"},
        ],
        "Generate comprehensive documentation for code",
    )
