"""
PokeScan - Text Recognition
Pluggable OCR back-ends. A recognizer returns the card's text top to bottom,
one printed line per text line, or None when the photo holds no text.
Outages and bad responses raise RecognitionFailure so they are never
mistaken for a blank card.
"""
import base64
import os
import shutil
from io import BytesIO
from typing import Optional, Protocol

import requests
import pytesseract
from PIL import Image, UnidentifiedImageError

import config
from exceptions import RecognitionFailure
from logger import get_logger, PerformanceLogger

logger = get_logger('text_recognition')


class TextRecognizer(Protocol):
    def recognize_text(self, image_bytes: bytes) -> Optional[str]:
        ...


class GoogleVisionRecognizer:
    """Google Cloud Vision TEXT_DETECTION over the REST API"""

    def __init__(self, api_key: str = config.GOOGLE_VISION_API_KEY,
                 api_url: str = config.VISION_API_URL,
                 timeout: float = config.VISION_TIMEOUT):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    def recognize_text(self, image_bytes: bytes) -> Optional[str]:
        if not self.api_key:
            raise RecognitionFailure("GOOGLE_VISION_API_KEY is not configured")

        payload = {
            'requests': [{
                'image': {'content': base64.b64encode(image_bytes).decode('ascii')},
                'features': [{'type': 'TEXT_DETECTION'}],
            }]
        }

        with PerformanceLogger("recognize_text | vision", logger):
            try:
                response = requests.post(
                    self.api_url,
                    params={'key': self.api_key},
                    json=payload,
                    timeout=self.timeout
                )
                response.raise_for_status()
                data = response.json()
            except requests.RequestException as e:
                logger.error(f"Vision API request failed: {e}")
                raise RecognitionFailure(f"Vision API request failed: {e}") from e
            except ValueError as e:
                raise RecognitionFailure("Vision API returned invalid JSON") from e

        text = []
        for res in data.get('responses') or []:
            if res.get('error'):
                message = res['error'].get('message', 'unknown error')
                logger.error(f"Vision API error: {message}")
                raise RecognitionFailure(f"Vision API error: {message}")

            # The first annotation is the full text block
            annotations = res.get('textAnnotations') or []
            if annotations:
                text.append(annotations[0].get('description', ''))

        full_text = ''.join(text)
        logger.debug(f"Vision OCR text: {full_text!r}")
        return full_text or None


def find_tesseract() -> Optional[str]:
    """Locate the tesseract binary: TESSERACT_CMD, PATH, then the usual install folders"""
    candidates = [
        os.environ.get('TESSERACT_CMD'),
        shutil.which('tesseract'),
        r'C:\Program Files\Tesseract-OCR\tesseract.exe',
        r'C:\Program Files (x86)\Tesseract-OCR\tesseract.exe',
        os.path.expandvars(r'%LOCALAPPDATA%\Programs\Tesseract-OCR\tesseract.exe'),
    ]
    for path in candidates:
        if path and os.path.exists(path):
            return path
    return None


class TesseractRecognizer:
    """Local OCR with Tesseract"""

    def __init__(self, tesseract_cmd: Optional[str] = None, ocr_config: str = config.TESSERACT_CONFIG):
        self.ocr_config = ocr_config
        cmd = tesseract_cmd or find_tesseract()
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd
            logger.debug(f"Tesseract found: {cmd}")
        else:
            logger.warning("Tesseract binary not found, relying on pytesseract default")

    def recognize_text(self, image_bytes: bytes) -> Optional[str]:
        try:
            image = Image.open(BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.error(f"Could not load image for OCR: {e}")
            raise RecognitionFailure("Could not load image for OCR") from e

        with PerformanceLogger("recognize_text | tesseract", logger):
            try:
                text = pytesseract.image_to_string(image.convert('L'), config=self.ocr_config)
            except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
                logger.error(f"Tesseract OCR failed: {e}")
                raise RecognitionFailure(f"Tesseract OCR failed: {e}") from e

        text = text.strip()
        logger.debug(f"Tesseract OCR text: {text!r}")
        return text or None


RECOGNIZERS = {
    'vision': GoogleVisionRecognizer,
    'tesseract': TesseractRecognizer,
}


def build_recognizer(name: str = config.TEXT_RECOGNIZER) -> TextRecognizer:
    try:
        recognizer_class = RECOGNIZERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown text recognizer '{name}', expected one of {sorted(RECOGNIZERS)}")
    logger.info(f"Using text recognizer: {name}")
    return recognizer_class()
