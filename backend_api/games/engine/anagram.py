from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .base import AssetStore, percentage, removed_paths, unique_paths
from .errors import ValidationError
from .shuffle import count_letters, scramble_word, shuffle_sequence

SCORE_PER_QUESTION = 1
EXACT_MATCH_MULTIPLIER = 2
LETTERS_PER_HINT = 5


def _normalize_word(value: str) -> str:
    """Upper-case and trim an authored word. Inner spaces are kept."""
    return (value or "").strip().upper()


def hint_limit(word: str) -> int:
    """One hint per started block of five letters."""
    return math.ceil(count_letters(word) / LETTERS_PER_HINT)


class _LazyUploads:
    """Stores uploaded files on first use so unreferenced uploads never hit storage."""

    def __init__(self, files: Sequence[Any], store: AssetStore) -> None:
        self._files = files
        self._store = store
        self._paths: Dict[int, str] = {}

    def path(self, index: int) -> str:
        if index not in self._paths:
            self._paths[index] = self._store(self._files[index])
        return self._paths[index]


def _check_image_index(index: Any, files: Sequence[Any], position: int) -> int:
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(files):
        raise ValidationError(
            f"Question {position} references image index {index!r} but only "
            f"{len(files)} file(s) were uploaded.",
            field="questions",
        )
    return index


def _check_word(word: str, position: int) -> str:
    normalized = _normalize_word(word)
    if count_letters(normalized) == 0:
        raise ValidationError(f"Question {position} has an empty correct_word.", field="questions")
    return normalized


@dataclass
class AnagramHandler:
    """Anagram variant: unscramble a word shown next to an image.

    Stored payload:
    {
        "score_per_question": 1,
        "is_question_randomized": bool,
        "questions": [{"question_id": str, "correct_word": str, "image_url": str}, ...]
    }
    """

    kind: str = "anagram"
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4())

    # PUBLIC_INTERFACE
    def build(self, data: Dict[str, Any], files: Sequence[Any], store: AssetStore) -> Dict[str, Any]:
        """Build the payload from authored questions and their uploaded images.

        Parameters:
            data: {"is_question_randomized": bool,
                   "questions": [{"correct_word": str, "image_index": int}, ...]}
            files: uploaded image files, referenced by image_index
            store: persists one file and returns its path

        Raises:
            ValidationError: question/file count mismatch, bad image index, empty word.
        """
        questions = data.get("questions") or []
        if not questions:
            raise ValidationError("At least one question is required.", field="questions")
        if len(questions) != len(files):
            raise ValidationError(
                "All questions must have a corresponding image file uploaded.",
                field="files_to_upload",
            )

        # Validate everything before the first upload.
        checked: List[Tuple[str, int]] = []
        for position, q in enumerate(questions):
            word = _check_word(q.get("correct_word", ""), position)
            index = _check_image_index(q.get("image_index"), files, position)
            checked.append((word, index))

        uploads = _LazyUploads(files, store)
        return {
            "score_per_question": SCORE_PER_QUESTION,
            "is_question_randomized": bool(data.get("is_question_randomized", False)),
            "questions": [
                {
                    "question_id": self.id_factory(),
                    "correct_word": word,
                    "image_url": uploads.path(index),
                }
                for word, index in checked
            ],
        }

    # PUBLIC_INTERFACE
    def present(
        self,
        payload: Dict[str, Any],
        rng: Optional[random.Random] = None,
        include_answers: bool = True,
    ) -> Dict[str, Any]:
        """Return questions with scrambled letters and per-question hint limits.

        Question order is shuffled when the payload asks for it. Each question
        keeps its own question_id so answers are matched by id, never by position.
        correct_word is only emitted when include_answers is true.
        """
        questions = list(payload.get("questions", []))
        if payload.get("is_question_randomized"):
            questions = shuffle_sequence(questions, rng)

        presented = []
        for q in questions:
            item = {
                "question_id": q["question_id"],
                "image_url": q["image_url"],
                "shuffled_letters": scramble_word(q["correct_word"], rng),
                "hint_limit": hint_limit(q["correct_word"]),
            }
            if include_answers:
                item["correct_word"] = q["correct_word"]
            presented.append(item)

        return {
            "score_per_question": payload.get("score_per_question", SCORE_PER_QUESTION),
            "is_question_randomized": bool(payload.get("is_question_randomized")),
            "questions": presented,
        }

    # PUBLIC_INTERFACE
    def score(self, payload: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        """Grade answers against the stored words.

        Per question (letter_count = non-space characters of the word):
        - no hints, exact match: letter_count * 2
        - no hints, mismatch: one point per position where guess and word agree
        - hints used: letter_count - hints, whatever was guessed

        Answers for unknown question ids are skipped.

        Raises:
            ValidationError: is_hinted is non-empty and its length differs from
                the question's letter count.
        """
        stored = payload.get("questions", [])
        words = {q["question_id"]: q["correct_word"] for q in stored}
        max_score = sum(count_letters(q["correct_word"]) for q in stored) * EXACT_MATCH_MULTIPLIER

        total = 0
        results = []
        for answer in data.get("answers", []):
            question_id = answer.get("question_id")
            correct_word = words.get(question_id)
            if correct_word is None:
                continue

            guessed = (answer.get("guessed_word") or "").upper()
            is_hinted = list(answer.get("is_hinted") or [])
            letter_count = count_letters(correct_word)
            hint_count = sum(1 for h in is_hinted if h is True)

            if is_hinted and len(is_hinted) != letter_count:
                raise ValidationError(
                    f"Hint array length mismatch for question {question_id}",
                    field="answers",
                )

            if hint_count == 0 and guessed == correct_word:
                question_score = letter_count * EXACT_MATCH_MULTIPLIER
            elif hint_count == 0:
                question_score = sum(
                    1
                    for i in range(min(letter_count, len(guessed), len(correct_word)))
                    if guessed[i] == correct_word[i]
                )
            else:
                question_score = (letter_count - hint_count) * SCORE_PER_QUESTION

            total += question_score
            results.append(
                {
                    "question_id": question_id,
                    "guessed_word": answer.get("guessed_word") or "",
                    "is_correct": guessed == correct_word,
                    "score": question_score,
                    "correct_word": correct_word,
                }
            )

        return {
            "total_questions": len(stored),
            "score": total,
            "max_score": max_score,
            "percentage": percentage(total, max_score),
            "results": results,
        }

    # PUBLIC_INTERFACE
    def merge_update(
        self,
        payload: Dict[str, Any],
        data: Dict[str, Any],
        files: Sequence[Any],
        store: AssetStore,
    ) -> Tuple[Dict[str, Any], List[str]]:
        """Merge a partial update into an existing payload.

        When "questions" is sent it replaces the question list. Each entry may
        carry the question_id of an existing question to keep that id, and an
        image_index into the newly uploaded files. Entries without image_index
        reuse the image of the existing question with the same id, then of the
        first existing question with the same word.

        Returns:
            (new_payload, image paths no longer referenced)
        """
        old_questions = payload.get("questions", [])
        merged = {
            "score_per_question": SCORE_PER_QUESTION,
            "is_question_randomized": bool(
                data.get("is_question_randomized", payload.get("is_question_randomized", False))
            ),
            "questions": old_questions,
        }

        if data.get("questions") is None:
            if files:
                raise ValidationError(
                    "Uploaded files must be referenced by questions.", field="files_to_upload"
                )
            return merged, []

        questions = data["questions"]
        if not questions:
            raise ValidationError("At least one question is required.", field="questions")

        by_id = {q["question_id"]: q for q in old_questions}
        by_word: Dict[str, Dict[str, Any]] = {}
        for q in old_questions:
            by_word.setdefault(q["correct_word"], q)

        # Resolve ids and image sources before anything is uploaded.
        plan: List[Tuple[Optional[str], str, Any]] = []
        seen_ids = set()
        for position, q in enumerate(questions):
            word = _check_word(q.get("correct_word", ""), position)
            question_id = q.get("question_id")
            if question_id is not None and question_id not in by_id:
                question_id = None
            if question_id is not None:
                if question_id in seen_ids:
                    raise ValidationError(
                        f"Duplicate question_id {question_id}", field="questions"
                    )
                seen_ids.add(question_id)

            if q.get("image_index") is not None:
                source: Any = _check_image_index(q["image_index"], files, position)
            else:
                previous = by_id.get(question_id) if question_id else None
                previous = previous or by_word.get(word)
                if previous is None:
                    raise ValidationError(
                        f"Question {position} has no image; upload one and set image_index.",
                        field="questions",
                    )
                source = previous["image_url"]
            plan.append((question_id, word, source))

        uploads = _LazyUploads(files, store)
        new_questions = []
        for question_id, word, source in plan:
            image_url = uploads.path(source) if isinstance(source, int) else source
            new_questions.append(
                {
                    "question_id": question_id or self.id_factory(),
                    "correct_word": word,
                    "image_url": image_url,
                }
            )

        merged["questions"] = new_questions
        stale = removed_paths(self.assets(payload), self.assets(merged))
        return merged, stale

    # PUBLIC_INTERFACE
    def assets(self, payload: Dict[str, Any]) -> List[str]:
        """Image paths of every stored question."""
        return unique_paths(q.get("image_url") for q in payload.get("questions", []))
