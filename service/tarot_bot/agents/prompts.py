"""
Prompts and tool schema for tarot readings.

Both providers get the same system prompt and are forced to answer through
the single `tarot_reading` tool, so the reply is always structured.
"""

TAROT_TOOL_NAME = "tarot_reading"
TAROT_TOOL_DESCRIPTION = "Generate a tarot card reading"

TAROT_READING_SCHEMA = {
    "type": "object",
    "properties": {
        "card": {
            "type": "string",
            "description": "The name of the tarot card",
        },
        "orientation": {
            "type": "string",
            "enum": ["upright", "reversed"],
            "description": "The orientation of the card",
        },
        "interpretation": {
            "type": "string",
            "description": "The interpretation of the card in the context of the question",
        },
    },
    "required": ["card", "orientation", "interpretation"],
}

TAROT_SYSTEM_PROMPT = """You are a skilled tarot reader using the Rider-Waite deck.
Randomly select one card from the 78-card Rider-Waite tarot deck and determine if it's upright or reversed.
Based on that card, provide a short interpretation in the context of the user's question.
Use the card's standard English name, e.g. "The Fool", "Three of Cups", "Knight of Wands".
Answer only by calling the tarot_reading tool with the card name, orientation, and interpretation."""


def build_user_message(question: str) -> str:
    return f"Question for tarot reading: {question}"
