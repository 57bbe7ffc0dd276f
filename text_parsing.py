"""
PokeScan - Recognized Text Parsing
Turns raw OCR output into the small, ordered signal the catalog lookup needs:
the top lines of the card, an optional HP value and the lines worth trying
as a card name.
"""
import re
from typing import Iterable, List, NamedTuple, Optional

import config

# 2-3 digits not touching other digits: "60", "HP 120", "HP120", "120HP"
HP_PATTERN = re.compile(r'(?<!\d)(\d{2,3})(?!\d)')


class TextLine(NamedTuple):
    line_index: int
    text: str


def tokenize_lines(text: Optional[str], max_lines: int = config.TEXT_SCAN_LINES) -> List[TextLine]:
    """
    Split recognized text into (line_index, trimmed text) pairs.

    Only the first max_lines raw lines are considered; name and HP sit at the
    top of the card, everything below is rules and flavor text. Indexes refer
    to the raw line position so blank lines still count towards the window.
    """
    if not text:
        return []
    raw_lines = text.splitlines()[:max_lines]
    return [TextLine(index, line.strip()) for index, line in enumerate(raw_lines)]


def is_skipped_label(text: str, labels: Iterable[str] = config.SKIPPED_NAME_LABELS) -> bool:
    """True for blank lines and structural labels such as 'BASIC'"""
    stripped = text.strip()
    if not stripped:
        return True
    return stripped.lower() in {label.lower() for label in labels}


def extract_hp(lines: Iterable[TextLine]) -> Optional[int]:
    """HP from the first line containing a 2-3 digit number, or None"""
    for line in lines:
        match = HP_PATTERN.search(line.text)
        if match:
            return int(match.group(1))
    return None


def name_guesses(lines: Iterable[TextLine]) -> List[TextLine]:
    """Lines to try as a card name, in print order"""
    return [line for line in lines if not is_skipped_label(line.text)]
