from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .base import AssetStore, percentage, removed_paths, unique_paths
from .errors import ValidationError
from .shuffle import shuffle_sequence

MIN_IMAGES = 2
MAX_IMAGES = 32


class _KeepAllImages:
    """Marker for an update that does not touch the existing image list."""

    def __repr__(self) -> str:  # pragma: no cover
        return "KEEP_ALL_IMAGES"


# PUBLIC_INTERFACE
# Pass as existing_images (or omit the key) to keep every stored image.
# An explicit empty list drops all of them.
KEEP_ALL_IMAGES = _KeepAllImages()


def _check_capacity(count: int, minimum: int = 0) -> None:
    if count > MAX_IMAGES:
        raise ValidationError(f"Max {MAX_IMAGES} images allowed", field="files_to_upload")
    if count < minimum:
        raise ValidationError(f"At least {minimum} images are required", field="files_to_upload")


@dataclass
class MatchingPairHandler:
    """Matching-pair variant: flip cards and find the two copies of each image.

    Stored payload:
    {"countdown": int, "score_per_match": int, "images": [str, ...]}
    """

    kind: str = "matching-pair"

    # PUBLIC_INTERFACE
    def build(self, data: Dict[str, Any], files: Sequence[Any], store: AssetStore) -> Dict[str, Any]:
        """Store the uploaded images in upload order and copy the timing/scoring fields.

        Raises:
            ValidationError: fewer than 2 or more than 32 images.
        """
        _check_capacity(len(files), MIN_IMAGES)
        return {
            "countdown": data["countdown"],
            "score_per_match": data["score_per_match"],
            "images": [store(f) for f in files],
        }

    # PUBLIC_INTERFACE
    def present(
        self,
        payload: Dict[str, Any],
        rng: Optional[random.Random] = None,
        include_answers: bool = True,
    ) -> Dict[str, Any]:
        """Return a shuffled deck holding every image twice.

        Both copies of an image share the same id (its index in the stored list).
        """
        cards = [{"id": index, "image": image} for index, image in enumerate(payload.get("images", []))]
        deck = shuffle_sequence(cards + [dict(card) for card in cards], rng)
        return {
            "countdown": payload.get("countdown"),
            "score_per_match": payload.get("score_per_match"),
            "images": deck,
        }

    # PUBLIC_INTERFACE
    def score(self, payload: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        """Score the set of matched image ids.

        Duplicated ids count once. Every id must be a valid image index. Which
        deck slots were actually flipped together is not verified.

        Raises:
            ValidationError: an id is outside [0, len(images)).
        """
        total_images = len(payload.get("images", []))
        per_match = payload.get("score_per_match", 0)

        matched = []
        for image_id in data.get("matched_pair_ids", []):
            if image_id not in matched:
                matched.append(image_id)
        for image_id in matched:
            if not 0 <= image_id < total_images:
                raise ValidationError(f"Invalid image ID: {image_id}", field="matched_pair_ids")

        score = len(matched) * per_match
        max_score = total_images * per_match
        return {
            "total_pairs": total_images,
            "matched_pairs_count": len(matched),
            "score": score,
            "max_score": max_score,
            "percentage": percentage(score, max_score),
        }

    # PUBLIC_INTERFACE
    def merge_update(
        self,
        payload: Dict[str, Any],
        data: Dict[str, Any],
        files: Sequence[Any],
        store: AssetStore,
    ) -> Tuple[Dict[str, Any], List[str]]:
        """Merge a partial update into the stored payload.

        data["existing_images"] selects which stored images survive, in the given
        order. Leaving it out (or passing KEEP_ALL_IMAGES) keeps all of them; an
        empty list drops all of them. New uploads are appended after the kept
        images. The 32-image ceiling is checked before anything is uploaded.

        Raises:
            ValidationError: unknown path in existing_images, or too many images.
        """
        old_images = list(payload.get("images", []))
        selection = data.get("existing_images", KEEP_ALL_IMAGES)

        if selection is KEEP_ALL_IMAGES or selection is None:
            kept = old_images
        else:
            unknown = [img for img in selection if img not in old_images]
            if unknown:
                raise ValidationError(
                    f"Unknown existing image(s): {', '.join(unknown)}", field="existing_images"
                )
            kept = unique_paths(selection)

        _check_capacity(len(kept) + len(files))

        images = kept + [store(f) for f in files]
        merged = {
            "countdown": data.get("countdown", payload.get("countdown")),
            "score_per_match": data.get("score_per_match", payload.get("score_per_match")),
            "images": images,
        }
        return merged, removed_paths(old_images, images)

    # PUBLIC_INTERFACE
    def assets(self, payload: Dict[str, Any]) -> List[str]:
        """Every stored image path."""
        return unique_paths(payload.get("images", []))
