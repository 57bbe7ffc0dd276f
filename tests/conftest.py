"""
PokeScan - Test Configuration
Shared fixtures and configuration for all tests
"""
import os
import sys
import tempfile
from pathlib import Path

# Keep test runs away from the project database and log folder
os.environ.setdefault('POKESCAN_DATABASE_URI', 'sqlite://')
os.environ.setdefault('POKESCAN_LOG_DIR', tempfile.mkdtemp(prefix='pokescan-logs-'))

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import cv2
import numpy as np
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def make_card_image(seed: int, height: int = 600, width: int = 430) -> bytes:
    """PNG bytes of a synthetic card face: random filled shapes and lines on white"""
    rng = np.random.RandomState(seed)
    img = np.full((height, width, 3), 255, dtype=np.uint8)

    def point():
        return int(rng.randint(0, width)), int(rng.randint(0, height))

    for _ in range(60):
        color = tuple(int(c) for c in rng.randint(0, 256, 3))
        kind = rng.randint(3)
        if kind == 0:
            cv2.rectangle(img, point(), point(), color, -1)
        elif kind == 1:
            cv2.circle(img, point(), int(rng.randint(5, 60)), color, -1)
        else:
            cv2.line(img, point(), point(), color, int(rng.randint(1, 6)))

    ok, buffer = cv2.imencode('.png', img)
    assert ok
    return buffer.tobytes()


def make_blank_image(value: int = 128, height: int = 600, width: int = 430) -> bytes:
    """PNG bytes of a uniform image - ORB finds no keypoints on it"""
    img = np.full((height, width), value, dtype=np.uint8)
    ok, buffer = cv2.imencode('.png', img)
    assert ok
    return buffer.tobytes()


@pytest.fixture(scope='function')
def test_engine():
    """In-memory database shared by every session of one test"""
    from database import Base
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope='function')
def session_factory(test_engine):
    return sessionmaker(bind=test_engine)


@pytest.fixture(scope='function')
def db_session(session_factory):
    """Create a new database session for each test"""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def catalog(session_factory):
    from catalog import CardCatalog
    return CardCatalog(session_factory)


@pytest.fixture
def add_cards(db_session):
    """Insert cards given as (id, name, hp) tuples or dicts"""
    from database import Card

    def _add(*cards):
        for card in cards:
            if isinstance(card, tuple):
                card_id, name, hp = card
                card = {'id': card_id, 'name': name, 'hp': hp}
            data = {'image_url': f"https://assets.tcgdex.net/en/test/{card['id']}", **card}
            db_session.add(Card(**data))
        db_session.commit()
    return _add


@pytest.fixture(scope='function')
def temp_dir():
    """Create temporary directory"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def image_store(temp_dir):
    from reference_images import ReferenceImageStore
    return ReferenceImageStore(temp_dir / 'card_images')


@pytest.fixture
def card_image():
    return make_card_image


@pytest.fixture
def blank_image():
    return make_blank_image


@pytest.fixture
def sample_card_data():
    """Sample TCGdex-shaped card record"""
    return {
        'id': 'base1-4',
        'set_id': 'base1',
        'local_id': '4',
        'name': 'Charizard',
        'image_url': 'https://assets.tcgdex.net/en/base/base1/4',
        'category': 'Pokemon',
        'rarity': 'Rare',
        'hp': 120,
    }
