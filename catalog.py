"""
PokeScan - Card Catalog
Read-side lookups over the card library used by the identification pipeline,
plus the upsert used when seeding the library from TCGdex.
"""
from typing import Callable, Dict, Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

import config
from database import Card, CardCandidate, get_db
from logger import get_logger, log_function_call

logger = get_logger('catalog')

CARD_FIELDS = ('id', 'set_id', 'local_id', 'name', 'image_url', 'category', 'rarity', 'hp')


class CardCatalog:
    """Card library access. Every call opens and closes its own session."""

    def __init__(self, session_factory: Callable[[], Session] = get_db):
        self.session_factory = session_factory

    @log_function_call(logger)
    def find_candidates(self, name_substring: str, hp: Optional[int] = None,
                        limit: int = config.CANDIDATE_LIMIT) -> List[CardCandidate]:
        """
        Cards whose name contains name_substring (case-insensitive) and,
        when hp is given, whose HP equals it. Only cards with an image URL
        are returned. Ordered by id so repeated scans see the same order.
        """
        db = self.session_factory()
        try:
            query = (
                db.query(Card)
                .filter(Card.image_url.isnot(None))
                .filter(func.lower(Card.name).contains(name_substring.lower(), autoescape=True))
            )
            if hp is not None:
                query = query.filter(Card.hp == hp)

            cards = query.order_by(Card.id).limit(limit).all()
            logger.debug(f"Catalog lookup | name='{name_substring}' | hp={hp} | found={len(cards)}")
            return [card.to_candidate() for card in cards]
        finally:
            db.close()

    def cards_with_images(self, limit: Optional[int] = None) -> List[CardCandidate]:
        """Every card that has a remote image, in id order"""
        db = self.session_factory()
        try:
            query = db.query(Card).filter(Card.image_url.isnot(None)).order_by(Card.id)
            if limit:
                query = query.limit(limit)
            return [card.to_candidate() for card in query.all()]
        finally:
            db.close()

    def set_ids(self) -> Set[str]:
        """Distinct set ids that already have cards in the catalog"""
        db = self.session_factory()
        try:
            rows = db.query(Card.set_id).filter(Card.set_id.isnot(None)).distinct().all()
            return {row[0] for row in rows}
        finally:
            db.close()

    def upsert_cards(self, records: Iterable[Dict]) -> int:
        """
        Insert or update cards from parsed TCGdex records.

        Returns:
            Number of records written
        """
        db = self.session_factory()
        count = 0
        try:
            for record in records:
                if not record.get('id') or not record.get('name'):
                    logger.warning(f"Skipping card record without id/name: {record}")
                    continue
                db.merge(Card(**{field: record.get(field) for field in CARD_FIELDS}))
                count += 1
            db.commit()
            logger.info(f"Catalog upsert complete | cards={count}")
            return count
        except Exception as e:
            db.rollback()
            logger.error(f"Catalog upsert failed: {e}", exc_info=True)
            raise
        finally:
            db.close()
