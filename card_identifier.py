"""
PokeScan - Card Identification
Two-stage pipeline: recognized text narrows the card library to a few
candidates, then visual re-ranking picks the printing that matches the photo.

    TextFiltering -> 0 or 1 candidates -> done
    TextFiltering -> 2+ candidates -> VisualReranking -> done
"""
import base64
import binascii
import uuid
from typing import Dict, List, Optional

from candidate_filter import CandidateTextFilter
from catalog import CardCatalog
from database import CardCandidate
from exceptions import DecodeFailure, NoImageProvided, RecognitionFailure, ScanError
from logger import get_context_logger, get_logger, PerformanceLogger
from reference_images import ReferenceImageStore
from text_recognition import TextRecognizer, build_recognizer
from visual_ranker import VisualReRanker

logger = get_logger('identify')


def decode_image_payload(payload: Optional[str]) -> bytes:
    """
    Decode a Base64 image as sent by a browser, with or without a
    'data:image/...;base64,' header.
    """
    if not payload or not payload.strip():
        raise NoImageProvided("No image provided")

    payload = payload.strip()
    if payload.startswith('data:') and ',' in payload:
        payload = payload.split(',', 1)[1]

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure("Image payload is not valid Base64") from e

    if not data:
        raise NoImageProvided("No image provided")
    return data


class CardIdentifier:
    """
    Identifies the card in a photo. Holds no per-request state, so one
    instance can serve concurrent requests.
    """

    def __init__(self, recognizer: Optional[TextRecognizer] = None,
                 catalog: Optional[CardCatalog] = None,
                 image_store: Optional[ReferenceImageStore] = None,
                 text_filter: Optional[CandidateTextFilter] = None,
                 reranker: Optional[VisualReRanker] = None):
        self.recognizer = recognizer or build_recognizer()
        self.text_filter = text_filter or CandidateTextFilter(catalog or CardCatalog())
        self.reranker = reranker or VisualReRanker(image_store or ReferenceImageStore())
        logger.info("CardIdentifier initialized")

    def identify(self, image_bytes: bytes) -> List[CardCandidate]:
        """
        Returns:
            [winner] for a confident visual match, otherwise the text
            candidates; [] when nothing matched.

        Raises:
            NoImageProvided: empty image data
            RecognitionFailure: the text recognizer failed
            DecodeFailure: the photo could not be decoded for visual matching
        """
        if not image_bytes:
            raise NoImageProvided("No image provided")

        scan_logger = get_context_logger('identify', scan_id=uuid.uuid4().hex[:12])
        scan_logger.info(f"Processing scan | bytes={len(image_bytes)}")

        with PerformanceLogger("identify", scan_logger):
            text = self._recognize(image_bytes)
            if not text or not text.strip():
                scan_logger.info("No text detected, nothing to look up")
                return []

            candidates = self.text_filter.find_candidates(text)
            scan_logger.info(f"Found {len(candidates)} matches in catalog")

            # Nothing to disambiguate
            if len(candidates) <= 1:
                return candidates

            result = self.reranker.rerank(image_bytes, candidates)
            scan_logger.info(f"Identification result | ids={[c.id for c in result]}")
            return result

    def identify_payload(self, payload: Optional[str]) -> List[CardCandidate]:
        """identify() for a Base64 payload"""
        return self.identify(decode_image_payload(payload))

    def identify_to_dicts(self, image_bytes: bytes) -> List[Dict]:
        return [candidate.to_dict() for candidate in self.identify(image_bytes)]

    def _recognize(self, image_bytes: bytes) -> Optional[str]:
        try:
            return self.recognizer.recognize_text(image_bytes)
        except ScanError:
            raise
        except Exception as e:
            logger.error(f"Text recognizer failed: {e}", exc_info=True)
            raise RecognitionFailure(f"Text recognition failed: {e}") from e
