"""
Static tarot reference data.

General meanings are bundled as JSON (card -> orientation -> text) and loaded
once. Card images follow a fixed naming scheme so both the reading handler
and the upload script derive the same file name from a card and orientation.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

MEANINGS_FILE = Path(__file__).resolve().parent.parent / "data" / "general_meanings.json"
IMAGE_DIR = "tarot-images"
ORIENTATIONS = ("upright", "reversed")


@lru_cache()
def load_general_meanings(path: Path = MEANINGS_FILE) -> dict[str, dict[str, str]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    for card, entry in data.items():
        if not isinstance(entry, dict) or not all(o in entry for o in ORIENTATIONS):
            raise ValueError(f"Card '{card}' must have both 'upright' and 'reversed' meanings")

    return data


def find_general_meaning(
    card: str,
    orientation: str,
    meanings: Optional[dict[str, dict[str, str]]] = None
) -> Optional[tuple[str, str]]:
    """
    Look up the general meaning of a card.

    The AI sometimes drops the article ("Fool" instead of "The Fool"), so the
    literal name is tried first and then the "The "-prefixed one.

    Returns:
        (matched card name, meaning) or None if neither name is known
    """
    if meanings is None:
        meanings = load_general_meanings()

    for name in (card, f"The {card}"):
        meaning = meanings.get(name, {}).get(orientation)
        if meaning:
            return name, meaning

    return None


def get_image_name(card: str, orientation: str) -> str:
    """'The Fool', 'upright' -> 'The_Fool_Upright.jpg'"""
    return f"{card.replace(' ', '_')}_{orientation[:1].upper()}{orientation[1:]}.jpg"


def get_image_path(card: str, orientation: str) -> str:
    """Image path relative to the public base URL."""
    return f"{IMAGE_DIR}/{get_image_name(card, orientation)}"


def list_cards() -> list[str]:
    return list(load_general_meanings().keys())
