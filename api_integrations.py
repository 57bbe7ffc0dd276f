"""
PokeScan - API Integrations
Communication with the TCGdex card database (card data and reference images)
"""
import requests
import time
from typing import Dict, List, Optional
import config
from logger import get_logger

# Initialize logger for this module
logger = get_logger('api')


class RateLimiter:
    """Simple rate limiter for API calls"""
    def __init__(self, calls_per_second: int):
        self.calls_per_second = calls_per_second
        self.last_call = 0

    def wait(self):
        """Wait if necessary to respect rate limit"""
        now = time.time()
        time_since_last = now - self.last_call
        min_interval = 1.0 / self.calls_per_second

        if time_since_last < min_interval:
            time.sleep(min_interval - time_since_last)

        self.last_call = time.time()


class TcgDexAPI:
    """TCGdex API client for Pokemon cards"""

    def __init__(self, base_url: str = config.TCGDEX_API_BASE):
        self.base_url = base_url.rstrip('/')
        self.rate_limiter = RateLimiter(config.TCGDEX_RATE_LIMIT)
        logger.debug("TcgDexAPI initialized")

    def get_card(self, card_id: str) -> Optional[Dict]:
        """Get full card details (HP, category, rarity) by TCGdex id"""
        logger.debug(f"TCGdex: Getting card | id={card_id}")
        self.rate_limiter.wait()

        try:
            response = requests.get(f"{self.base_url}/cards/{card_id}", timeout=10)

            if response.status_code == 200:
                logger.info(f"TCGdex: Card retrieved | id={card_id}")
                return self._parse_card_data(response.json())
            logger.debug(f"TCGdex: Card not found | id={card_id} | status={response.status_code}")
            return None
        except requests.RequestException as e:
            logger.error(f"TCGdex API error: {e}", exc_info=True)
            return None

    def get_sets(self) -> Optional[List[str]]:
        """List the ids of every set TCGdex knows about"""
        logger.debug("TCGdex: Listing sets")
        self.rate_limiter.wait()

        try:
            response = requests.get(f"{self.base_url}/sets", timeout=10)

            if response.status_code == 200:
                set_ids = [entry['id'] for entry in response.json() if entry.get('id')]
                logger.info(f"TCGdex: Sets listed | count={len(set_ids)}")
                return set_ids
            logger.warning(f"TCGdex: Set list failed | status={response.status_code}")
            return None
        except (requests.RequestException, ValueError) as e:
            logger.error(f"TCGdex API error: {e}", exc_info=True)
            return None

    def get_set(self, set_id: str) -> Optional[List[str]]:
        """
        Get the card ids of one set. The set endpoint only carries card
        briefs, so full records still come from get_card().
        """
        logger.debug(f"TCGdex: Getting set | id={set_id}")
        self.rate_limiter.wait()

        try:
            response = requests.get(f"{self.base_url}/sets/{set_id}", timeout=10)

            if response.status_code == 200:
                cards = response.json().get('cards') or []
                card_ids = [card['id'] for card in cards if card.get('id')]
                logger.info(f"TCGdex: Set retrieved | id={set_id} | cards={len(card_ids)}")
                return card_ids
            logger.debug(f"TCGdex: Set not found | id={set_id} | status={response.status_code}")
            return None
        except (requests.RequestException, ValueError) as e:
            logger.error(f"TCGdex API error: {e}", exc_info=True)
            return None

    def download_card_image(self, image_base: str, quality: str = config.TCGDEX_IMAGE_QUALITY) -> Optional[bytes]:
        """
        Download a card image. TCGdex image fields are base URLs that need
        '/<quality>.png' appended.
        """
        if not image_base:
            return None

        url = f"{image_base.rstrip('/')}/{quality}.png"
        self.rate_limiter.wait()

        try:
            response = requests.get(url, timeout=10)
            if response.status_code == 200 and response.content:
                return response.content
            logger.warning(f"TCGdex: Image download failed | url={url} | status={response.status_code}")
            return None
        except requests.RequestException as e:
            logger.error(f"TCGdex image download error: {e}")
            return None

    def _parse_card_data(self, data: Dict) -> Dict:
        """Parse TCGdex card data to our format"""
        hp = data.get('hp')
        try:
            hp = int(hp) if hp is not None else None
        except (TypeError, ValueError):
            hp = None

        return {
            'id': data.get('id'),
            'set_id': (data.get('set') or {}).get('id'),
            'local_id': data.get('localId'),
            'name': data.get('name'),
            'image_url': data.get('image'),
            'category': data.get('category'),
            'rarity': data.get('rarity'),
            'hp': hp,
        }
