"""
PokeScan - API Integration Tests
Tests for the rate limiter and the TCGdex client
"""
import pytest
from unittest.mock import patch, MagicMock
import requests


class TestRateLimiter:
    """Tests for the rate limiter"""

    def test_rate_limiter_basic(self):
        """Second call should have some delay"""
        from api_integrations import RateLimiter
        import time

        limiter = RateLimiter(calls_per_second=10)

        limiter.wait()
        first_call = time.time()
        limiter.wait()
        second_call = time.time()

        assert second_call >= first_call + 0.1 - 0.01  # Allow small margin

    def test_rate_limiter_respects_limit(self):
        from api_integrations import RateLimiter
        import time

        limiter = RateLimiter(calls_per_second=5)  # 0.2 seconds between calls

        start = time.time()
        for _ in range(3):
            limiter.wait()
        end = time.time()

        assert end - start >= 0.35


@pytest.fixture
def api():
    from api_integrations import TcgDexAPI
    client = TcgDexAPI()
    client.rate_limiter = MagicMock()
    return client


class TestTcgDexAPI:
    """Tests for the TCGdex client"""

    def test_get_card_success(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_response = MagicMock()
            mock_response.status_code = 200
            mock_response.json.return_value = {
                'id': 'base1-4',
                'localId': '4',
                'name': 'Charizard',
                'image': 'https://assets.tcgdex.net/en/base/base1/4',
                'category': 'Pokemon',
                'rarity': 'Rare',
                'hp': 120,
                'types': ['Fire'],
                'set': {'id': 'base1', 'name': 'Base Set'},
            }
            mock_get.return_value = mock_response

            result = api.get_card('base1-4')

        assert result == {
            'id': 'base1-4',
            'set_id': 'base1',
            'local_id': '4',
            'name': 'Charizard',
            'image_url': 'https://assets.tcgdex.net/en/base/base1/4',
            'category': 'Pokemon',
            'rarity': 'Rare',
            'hp': 120,
        }
        mock_get.assert_called_once()
        assert mock_get.call_args.args[0].endswith('/cards/base1-4')

    def test_get_card_trainer_without_hp(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=200)
            mock_get.return_value.json.return_value = {'id': 'sv1-172', 'name': 'Nest Ball', 'category': 'Trainer'}

            result = api.get_card('sv1-172')

        assert result['hp'] is None
        assert result['set_id'] is None

    def test_get_card_not_found(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=404)

            assert api.get_card('nope-1') is None

    def test_get_card_network_error(self, api):
        with patch('api_integrations.requests.get', side_effect=requests.RequestException("Network error")):
            assert api.get_card('base1-4') is None

    def test_download_card_image(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=200, content=b'png-bytes')

            data = api.download_card_image('https://assets.tcgdex.net/en/base/base1/4/')

        assert data == b'png-bytes'
        assert mock_get.call_args.args[0] == 'https://assets.tcgdex.net/en/base/base1/4/low.png'

    def test_download_card_image_high_quality(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=200, content=b'png-bytes')

            api.download_card_image('https://assets.tcgdex.net/en/base/base1/4', quality='high')

        assert mock_get.call_args.args[0].endswith('/4/high.png')

    def test_download_without_image_url(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            assert api.download_card_image(None) is None
        mock_get.assert_not_called()

    def test_download_failure(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=404, content=b'')
            assert api.download_card_image('https://assets.tcgdex.net/x') is None

        with patch('api_integrations.requests.get', side_effect=requests.Timeout("slow")):
            assert api.download_card_image('https://assets.tcgdex.net/x') is None


class TestTcgDexSets:
    """Tests for the set endpoints used to seed whole sets"""

    def test_get_sets(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=200)
            mock_get.return_value.json.return_value = [
                {'id': 'base1', 'name': 'Base Set'},
                {'name': 'Broken entry'},
                {'id': 'sv1', 'name': 'Scarlet & Violet'},
            ]

            assert api.get_sets() == ['base1', 'sv1']

        assert mock_get.call_args.args[0].endswith('/sets')

    def test_get_sets_failure(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=503)
            assert api.get_sets() is None

        with patch('api_integrations.requests.get', side_effect=requests.ConnectionError("down")):
            assert api.get_sets() is None

    def test_get_set_returns_card_ids(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=200)
            mock_get.return_value.json.return_value = {
                'id': 'base1',
                'name': 'Base Set',
                'cardCount': {'total': 102, 'official': 102},
                'cards': [
                    {'id': 'base1-1', 'localId': '1', 'name': 'Alakazam'},
                    {'id': 'base1-4', 'localId': '4', 'name': 'Charizard'},
                ],
            }

            assert api.get_set('base1') == ['base1-1', 'base1-4']

        assert mock_get.call_args.args[0].endswith('/sets/base1')

    def test_get_set_without_cards(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=200)
            mock_get.return_value.json.return_value = {'id': 'promo', 'name': 'Promos'}

            assert api.get_set('promo') == []

    def test_get_set_not_found(self, api):
        with patch('api_integrations.requests.get') as mock_get:
            mock_get.return_value = MagicMock(status_code=404)
            assert api.get_set('nope') is None

        with patch('api_integrations.requests.get', side_effect=requests.Timeout("slow")):
            assert api.get_set('base1') is None
