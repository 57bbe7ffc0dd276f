"""
PokeScan - Configuration
"""
import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).parent

# Database
DATABASE_PATH = Path(os.environ.get('POKESCAN_DATABASE_PATH', BASE_DIR / 'pokescan.db'))
SQLALCHEMY_DATABASE_URI = os.environ.get('POKESCAN_DATABASE_URI', f'sqlite:///{DATABASE_PATH}')

# Reference images (one <card_id>.png per catalog entry)
CARD_IMAGES_DIR = Path(os.environ.get('POKESCAN_CARD_IMAGES_DIR', BASE_DIR / 'card_images'))
REFERENCE_IMAGE_EXTENSION = '.png'

# Text filtering
CANDIDATE_LIMIT = 100
TEXT_SCAN_LINES = 5  # name and HP are printed near the top of the card
SKIPPED_NAME_LABELS = {'basic'}  # stage labels, never a card name

# Visual re-ranking
ORB_FEATURES = 2000
GOOD_MATCH_DISTANCE = 250  # Hamming distance, ORB descriptors are 256 bits
RERANK_WORKERS = int(os.environ.get('POKESCAN_RERANK_WORKERS', '1'))

# Margin-aware winner selection. Unset keeps strict winner-take-all.
_margin = os.environ.get('POKESCAN_SCORE_MARGIN_RATIO')
SCORE_MARGIN_RATIO = float(_margin) if _margin else None
MARGIN_FALLBACK_TOP_N = 5

# Text recognition
TEXT_RECOGNIZER = os.environ.get('POKESCAN_TEXT_RECOGNIZER', 'vision')  # vision | tesseract
GOOGLE_VISION_API_KEY = os.environ.get('GOOGLE_VISION_API_KEY', '')
VISION_API_URL = 'https://vision.googleapis.com/v1/images:annotate'
VISION_TIMEOUT = 15  # seconds
TESSERACT_CONFIG = '--oem 3 --psm 6 -l eng'

# API Configuration - TCGdex (catalog and reference images)
TCGDEX_API_BASE = 'https://api.tcgdex.net/v2/en'
TCGDEX_RATE_LIMIT = 5  # requests per second
TCGDEX_IMAGE_QUALITY = 'low'  # low | high
