# scamguard/prompts.py
"""
Prompt templates for the completion-backed endpoints.
"""

from typing import Dict, List, Optional

SCAM_SYSTEM_PROMPT = (
    "You are a fraud and scam detection assistant.\n"
    "Classify the user's message as a scam attempt or as safe.\n"
    "Look for urgency, requests for money, gift cards or credentials, impersonation, "
    "too-good-to-be-true offers and suspicious links.\n"
    "Return ONLY valid JSON with this exact schema:\n"
    "{\"label\": \"scam\" | \"safe\", \"confidence\": <number 0-100>, \"reason\": \"<one short sentence>\"}"
)

EXTRACT_CODE_SYSTEM_PROMPT = """
You are a strict CODE extractor.
Rules:
- Only extract code.
- No extra text.
- No new code.
- If no code found, return exactly: "No code found."
"""

CHATBOT_SYSTEM_PROMPT = (
    "You are a friendly, helpful assistant.\n"
    "Reply clearly and concisely.\n"
    "If you do not know something, say so instead of guessing."
)

TEXT_TO_CODE_SYSTEM_PROMPT = (
    "You turn natural-language descriptions into working code.\n"
    "Return only the code, with no explanation and no markdown fences.\n"
    "Pick the language the description asks for; default to Python."
)

SUMMARIZE_USER_TEMPLATE = "Summarize the following text in a few sentences:\n\n{text}"


def build_messages(text: str, system_prompt: Optional[str] = None,
                   user_template: str = "{text}") -> List[Dict[str, str]]:
    """
    One user message embedding the input, optionally preceded by a fixed
    system instruction.
    """
    messages: List[Dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_template.format(text=text)})
    return messages
