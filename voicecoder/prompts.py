"""Prompts for code questions and rendering of answers."""

from __future__ import annotations

from .models import ChatResponse, Message, Role

CODE_ASSISTANT_SYSTEM_PROMPT = (
    "You are an expert coding assistant. "
    "Provide clear, concise, and helpful answers about code."
)


def build_code_question_messages(code: str, question: str, language: str = "") -> list[Message]:
    """System prompt plus one user turn holding the fenced code and question."""
    user_content = f"Here is the code:\n\n```{language}\n{code}\n```\n\n{question}"
    return [
        Message(role=Role.SYSTEM, content=CODE_ASSISTANT_SYSTEM_PROMPT),
        Message(role=Role.USER, content=user_content),
    ]


def render_answer(question: str, response: ChatResponse, provider_name: str, cost: float) -> str:
    """Markdown document shown to the user for one answer."""
    return (
        "# VoiceCoder Response\n\n"
        f"**Question:** {question}\n\n"
        f"**Answer:**\n\n{response.content}\n\n"
        "---\n"
        f"*Provider: {provider_name} | Model: {response.model} | Cost: ${cost:.4f}*"
    )
