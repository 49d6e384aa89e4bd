"""
Prompt builder for comment generation.

The default system prompt takes the user's tone; a non-blank override
replaces it entirely. Post text is truncated before it is sent.
"""

from __future__ import annotations

from engine.kernel.types import DEFAULT_TONE, MAX_POST_CHARS, SettingsSnapshot

SYSTEM_PROMPT_TEMPLATE = """You are a LinkedIn comment assistant. Write a {tone} comment in response to the LinkedIn post below.

Guidelines:
- Keep it concise (1-3 sentences max)
- Sound authentic and human, never robotic or generic
- Match the language of the original post
- Add value: share a perspective, ask a thoughtful question, or build on the idea
- Do not use hashtags or emojis unless the post's tone calls for it
- Do not start with "Great post!" or similar filler
- Return ONLY the comment text, nothing else"""

PROBE_SYSTEM_PROMPT = 'Reply with the single word "ok".'
PROBE_USER_TEXT = "Test"


def build_system_prompt(settings: SettingsSnapshot) -> str:
    override = (settings.system_prompt_override or "").strip()
    if override:
        return override
    return SYSTEM_PROMPT_TEMPLATE.format(tone=settings.tone or DEFAULT_TONE)


def truncate_post(text: str | None, limit: int = MAX_POST_CHARS) -> str:
    return (text or "")[:limit]
