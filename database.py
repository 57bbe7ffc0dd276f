"""
PokeScan - Database Models
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import create_engine, Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker

import config
from logger import get_logger

# Initialize logger for this module
logger = get_logger('database')

Base = declarative_base()


@dataclass(frozen=True)
class CardCandidate:
    """Read-only view of a catalog entry considered during identification"""
    id: str
    name: str
    hp: Optional[int] = None
    image_url: Optional[str] = None
    set_id: Optional[str] = None
    local_id: Optional[str] = None
    category: Optional[str] = None
    rarity: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


class Card(Base):
    """Card library - one row per printed card (reprints are separate rows)"""
    __tablename__ = 'cards'

    id = Column(String(50), primary_key=True)  # TCGdex id, e.g. "sv1-001"
    set_id = Column(String(50), index=True)
    local_id = Column(String(20))  # number printed on the card
    name = Column(String(200), nullable=False, index=True)
    image_url = Column(String(500))
    category = Column(String(50))  # Pokemon, Trainer, Energy
    rarity = Column(String(50))
    hp = Column(Integer, index=True)  # null for Trainer / Energy cards
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_candidate(self) -> CardCandidate:
        return CardCandidate(
            id=self.id,
            name=self.name,
            hp=self.hp,
            image_url=self.image_url,
            set_id=self.set_id,
            local_id=self.local_id,
            category=self.category,
            rarity=self.rarity,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'set_id': self.set_id,
            'local_id': self.local_id,
            'name': self.name,
            'image_url': self.image_url,
            'category': self.category,
            'rarity': self.rarity,
            'hp': self.hp,
        }


# Database initialization
engine = create_engine(config.SQLALCHEMY_DATABASE_URI)
SessionLocal = sessionmaker(bind=engine)


def init_db(bind=None):
    """Initialize database tables"""
    logger.info("Initializing database...")
    try:
        Base.metadata.create_all(bind or engine)
        logger.info(f"Database initialized successfully at {config.SQLALCHEMY_DATABASE_URI}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise


def get_db():
    """Get database session"""
    logger.debug("Creating new database session")
    return SessionLocal()


if __name__ == '__main__':
    init_db()
