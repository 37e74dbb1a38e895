"""
Image Corpus Sampler

Bounds the photo set sent to the model per run and keeps an explicit
position -> photo mapping, because sampled order is random per run.
"""

import random
from typing import List, Optional, Sequence, NamedTuple

from core.exceptions import InsufficientInputError
from models.domain.gemstone import GemstonePhoto
from models.domain.policy import SamplingPolicy

import logging

logger = logging.getLogger(__name__)


class ImageRef(NamedTuple):
    """Permanent identity of a sampled photo."""
    photo_id: Optional[str]
    original_index: int


class PositionMap:
    """
    Bijection between working-set positions and photo identities.

    Every component that reports "image 3" resolves it here, never by
    trusting raw array positions.
    """

    def __init__(self, refs: Sequence[ImageRef]):
        self._refs = list(refs)
        self._by_id = {ref.photo_id: pos for pos, ref in enumerate(self._refs) if ref.photo_id is not None}

        if len({ref.original_index for ref in self._refs}) != len(self._refs):
            raise ValueError("Sampled positions must map to distinct photos")

    @classmethod
    def positional(cls, count: int) -> "PositionMap":
        """Fallback mapping when stable identifiers are unavailable."""
        return cls([ImageRef(None, i) for i in range(count)])

    def __len__(self) -> int:
        return len(self._refs)

    def resolve(self, position: int) -> ImageRef:
        """Map a working-set position to its photo. Raises IndexError if out of range."""
        if position < 0 or position >= len(self._refs):
            raise IndexError(f"Position {position} outside sampled range 0..{len(self._refs) - 1}")
        return self._refs[position]

    def position_of(self, photo_id: str) -> Optional[int]:
        return self._by_id.get(photo_id)

    @property
    def photo_ids(self) -> List[Optional[str]]:
        return [ref.photo_id for ref in self._refs]

    @property
    def is_identity(self) -> bool:
        """True when position i is the i-th photo in display order."""
        return all(ref.original_index == pos for pos, ref in enumerate(self._refs))


class ImageSample:
    """Working set of photos plus its position map."""

    def __init__(self, photos: Sequence[GemstonePhoto], mapping: PositionMap, total: int):
        self.photos = list(photos)
        self.mapping = mapping
        self.total = total

    def __len__(self) -> int:
        return len(self.photos)

    @property
    def urls(self) -> List[str]:
        return [photo.image_url for photo in self.photos]

    @property
    def is_full_coverage(self) -> bool:
        return len(self.photos) == self.total


class ImageSampler:
    """
    Picks a bounded, unbiased subset of a gemstone's photos.

    - N <= full_coverage_limit: every photo, identity mapping
    - N >  full_coverage_limit: sample_size photos from a random permutation
    """

    def __init__(self, policy: SamplingPolicy = None, rng: random.Random = None):
        self.policy = policy or SamplingPolicy()
        self.rng = rng or random.Random()

    def sample(self, photos: Sequence[GemstonePhoto]) -> ImageSample:
        if not photos:
            raise InsufficientInputError("Gemstone has no photographs to analyze", step="sample")

        total = len(photos)
        if total <= self.policy.full_coverage_limit:
            indices = list(range(total))
        else:
            k = min(self.policy.sample_size, total)
            indices = self.rng.sample(range(total), k)
            logger.debug(f"Sampled {k} of {total} photos")

        chosen = [photos[i] for i in indices]
        mapping = PositionMap([ImageRef(photos[i].id, i) for i in indices])
        return ImageSample(chosen, mapping, total)
