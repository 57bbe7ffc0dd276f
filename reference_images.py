"""
PokeScan - Reference Image Store
Local copies of the official card images, stored as <card_id>.png.
A missing image is normal while the library grows and never raises.
"""
from pathlib import Path
from typing import Dict, Iterable, Optional

import config
from database import CardCandidate
from logger import get_logger

logger = get_logger('reference_images')


def _is_safe_id(card_id: str) -> bool:
    return bool(card_id) and '/' not in card_id and '\\' not in card_id and card_id not in ('.', '..')


class ReferenceImageStore:
    """Existence-checked lookup of reference images by card id"""

    def __init__(self, root: Path = config.CARD_IMAGES_DIR,
                 extension: str = config.REFERENCE_IMAGE_EXTENSION):
        self.root = Path(root)
        self.extension = extension

    def path_for(self, card_id: str) -> Path:
        return self.root / f"{card_id}{self.extension}"

    def resolve_image_path(self, card_id: str) -> Optional[Path]:
        if not _is_safe_id(card_id):
            return None
        path = self.path_for(card_id)
        return path if path.is_file() else None

    def save_image(self, card_id: str, data: bytes) -> Path:
        if not _is_safe_id(card_id):
            raise ValueError(f"Invalid card id for image storage: {card_id!r}")
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.path_for(card_id)
        path.write_bytes(data)
        logger.debug(f"Saved reference image | id={card_id} | bytes={len(data)}")
        return path

    def fetch_missing(self, candidates: Iterable[CardCandidate], api) -> Dict[str, int]:
        """
        Download reference images for cards that have none locally.

        Args:
            candidates: Cards to check
            api: TcgDexAPI (or anything with download_card_image)

        Returns:
            Counts of 'downloaded', 'present' and 'failed' cards
        """
        stats = {'downloaded': 0, 'present': 0, 'failed': 0}
        for candidate in candidates:
            if self.resolve_image_path(candidate.id):
                stats['present'] += 1
                continue
            if not _is_safe_id(candidate.id):
                logger.warning(f"Skipping card with unusable id: {candidate.id!r}")
                stats['failed'] += 1
                continue

            data = api.download_card_image(candidate.image_url)
            if not data:
                logger.warning(f"No reference image available | id={candidate.id}")
                stats['failed'] += 1
                continue

            try:
                self.save_image(candidate.id, data)
                stats['downloaded'] += 1
            except OSError as e:
                logger.error(f"Could not write reference image for {candidate.id}: {e}")
                stats['failed'] += 1

        logger.info(f"Reference image sync | {stats}")
        return stats
