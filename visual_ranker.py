"""
PokeScan - Visual Re-Ranker
Disambiguates reprints and alternate arts that share a printed name by
comparing ORB keypoint structure between the photo and each candidate's
reference image.
"""
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence, Tuple

import cv2
import numpy as np

import config
from database import CardCandidate
from exceptions import DecodeFailure
from logger import get_logger, PerformanceLogger
from reference_images import ReferenceImageStore

logger = get_logger('visual_ranker')


class CandidateScore(NamedTuple):
    candidate: CardCandidate
    score: Optional[int]  # None when the reference image gave no descriptors


def decode_grayscale(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, ...) to a single-channel raster"""
    if not data:
        raise DecodeFailure("Could not decode image: no data")
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_GRAYSCALE)
    if image is None or image.size == 0:
        raise DecodeFailure("Could not decode image data")
    return image


def load_grayscale(path: Path) -> np.ndarray:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise DecodeFailure(f"Could not load image: {path}") from e
    return decode_grayscale(data)


class OrbFeatureExtractor:
    """ORB detector plus cross-checked Hamming matcher, one per scoring context"""

    def __init__(self, nfeatures: int = config.ORB_FEATURES):
        self.orb = cv2.ORB_create(nfeatures=nfeatures)
        # crossCheck keeps only mutual best pairs: one candidate keypoint per user keypoint
        self.matcher = cv2.BFMatcher(cv2.NORM_HAMMING, crossCheck=True)

    def describe(self, gray: np.ndarray) -> Optional[np.ndarray]:
        """Binary descriptors for the image, or None when no keypoints were found"""
        _, descriptors = self.orb.detectAndCompute(gray, None)
        if descriptors is None or len(descriptors) == 0:
            return None
        return descriptors

    def count_good_matches(self, query: np.ndarray, train: np.ndarray,
                           max_distance: float = config.GOOD_MATCH_DISTANCE) -> int:
        matches = self.matcher.match(query, train)
        return sum(1 for m in matches if m.distance < max_distance)


class VisualReRanker:
    """
    Scores every candidate with an available reference image and keeps the
    one with the most good matches.

    Ties go to the candidate that comes first in the candidate list (strict
    '>' while scanning in order). With a margin ratio configured, a winner that
    does not beat the runner-up by that ratio is not trusted and the top
    scored candidates are returned instead.
    """

    def __init__(self, image_store: ReferenceImageStore,
                 nfeatures: int = config.ORB_FEATURES,
                 max_distance: float = config.GOOD_MATCH_DISTANCE,
                 workers: int = config.RERANK_WORKERS,
                 margin_ratio: Optional[float] = config.SCORE_MARGIN_RATIO,
                 fallback_top_n: int = config.MARGIN_FALLBACK_TOP_N):
        self.image_store = image_store
        self.nfeatures = nfeatures
        self.max_distance = max_distance
        self.workers = max(1, workers)
        self.margin_ratio = margin_ratio
        self.fallback_top_n = fallback_top_n

    def rerank(self, image_bytes: bytes, candidates: Sequence[CardCandidate]) -> List[CardCandidate]:
        """
        Returns [winner] when at least one candidate could be scored,
        otherwise the candidates unchanged.

        Raises:
            DecodeFailure: the user's photo is not a decodable image
        """
        candidates = list(candidates)

        with PerformanceLogger(f"rerank | candidates={len(candidates)}", logger):
            user_gray = decode_grayscale(image_bytes)
            user_descriptors = OrbFeatureExtractor(self.nfeatures).describe(user_gray)
            del user_gray

            if user_descriptors is None:
                logger.info("No keypoints found in the photo, returning text candidates")
                return candidates

            resolved = self.resolve_reference_images(candidates)
            logger.info(f"Prepared {len(resolved)}/{len(candidates)} candidate images for visual matching")
            if not resolved:
                return candidates

            scores = self.score_candidates(user_descriptors, resolved)
            return self.select(candidates, scores)

    def resolve_reference_images(self, candidates: Sequence[CardCandidate]) -> List[Tuple[CardCandidate, Path]]:
        resolved = []
        for candidate in candidates:
            path = self.image_store.resolve_image_path(candidate.id)
            if path is None:
                logger.debug(f"No reference image | id={candidate.id}")
                continue
            resolved.append((candidate, path))
        return resolved

    def score_candidates(self, user_descriptors: np.ndarray,
                         resolved: Sequence[Tuple[CardCandidate, Path]]) -> List[CandidateScore]:
        """Scores in the same order as resolved, whether or not run in parallel"""
        if self.workers == 1 or len(resolved) == 1:
            extractor = OrbFeatureExtractor(self.nfeatures)
            return [self._score(extractor, user_descriptors, candidate, path)
                    for candidate, path in resolved]

        # cv2 detectors are not shared between threads, each task builds its own
        def score_one(item):
            candidate, path = item
            return self._score(OrbFeatureExtractor(self.nfeatures), user_descriptors, candidate, path)

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(score_one, resolved))

    def _score(self, extractor: OrbFeatureExtractor, user_descriptors: np.ndarray,
               candidate: CardCandidate, path: Path) -> CandidateScore:
        try:
            card_descriptors = extractor.describe(load_grayscale(path))
        except DecodeFailure as e:
            logger.warning(f"Skipping candidate {candidate.id}: {e}")
            return CandidateScore(candidate, None)

        if card_descriptors is None:
            logger.debug(f"No descriptors in reference image | id={candidate.id}")
            return CandidateScore(candidate, None)

        good = extractor.count_good_matches(user_descriptors, card_descriptors, self.max_distance)
        logger.debug(f"Checking candidate {path.name} -> {good} matches")
        return CandidateScore(candidate, good)

    def select(self, candidates: Sequence[CardCandidate], scores: Sequence[CandidateScore]) -> List[CardCandidate]:
        scored = [s for s in scores if s.score is not None]
        if not scored:
            logger.info("No candidate could be scored visually, returning text candidates")
            return list(candidates)

        best = None
        for entry in scored:
            if best is None or entry.score > best.score:
                best = entry

        if self.margin_ratio and len(scored) > 1:
            # sorted() is stable, equal scores keep candidate order
            ranked = sorted(scored, key=lambda s: s.score, reverse=True)
            runner_up = ranked[1].score
            if best.score < self.margin_ratio * runner_up:
                logger.info(f"Visual winner {best.candidate.id} ({best.score}) within margin of runner-up "
                            f"({runner_up}), returning top {self.fallback_top_n}")
                return [s.candidate for s in ranked[:self.fallback_top_n]]

        logger.info(f"Visual Match Winner: {best.candidate.id} | good_matches={best.score}")
        return [best.candidate]
