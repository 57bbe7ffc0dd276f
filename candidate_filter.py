"""
PokeScan - Candidate Text Filter
Narrows the card library to a short candidate list using recognized text.
"""
from typing import List, Optional

import config
from catalog import CardCatalog
from database import CardCandidate
from logger import get_logger
from text_parsing import extract_hp, name_guesses, tokenize_lines

logger = get_logger('candidate_filter')


class CandidateTextFilter:
    """
    Tries each of the top lines of the card as a name, in print order, and
    returns the first line that matches anything. Later lines (attack names,
    rules text) are never allowed to dilute an earlier hit.
    """

    def __init__(self, catalog: CardCatalog, max_lines: int = config.TEXT_SCAN_LINES,
                 limit: int = config.CANDIDATE_LIMIT):
        self.catalog = catalog
        self.max_lines = max_lines
        self.limit = limit

    def find_candidates(self, text: Optional[str]) -> List[CardCandidate]:
        lines = tokenize_lines(text, self.max_lines)
        if not lines:
            logger.info("No recognized text, skipping catalog lookup")
            return []

        hp = extract_hp(lines)
        if hp is not None:
            logger.debug(f"Detected HP: {hp}")

        for line in name_guesses(lines):
            logger.debug(f"Searching for card name | line={line.line_index} | text='{line.text}' | hp={hp}")
            matches = self.catalog.find_candidates(line.text, hp, self.limit)
            if matches:
                candidates = _unique(matches)[:self.limit]
                logger.info(f"Text filter matched line {line.line_index} '{line.text}' | candidates={len(candidates)}")
                return candidates

        logger.info(f"Text filter found no candidates | lines={len(lines)} | hp={hp}")
        return []


def _unique(candidates: List[CardCandidate]) -> List[CardCandidate]:
    seen = set()
    unique = []
    for candidate in candidates:
        if candidate.id not in seen:
            seen.add(candidate.id)
            unique.append(candidate)
    return unique
