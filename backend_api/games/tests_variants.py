import random
from collections import Counter
from itertools import count

from django.test import SimpleTestCase

from games.engine import (
    KEEP_ALL_IMAGES,
    AnagramHandler,
    MatchingPairHandler,
    NotFoundError,
    ValidationError,
    get_handler,
)


class FakeStore:
    """Records stored files and hands back predictable paths."""

    def __init__(self):
        self.stored = []

    def __call__(self, upload):
        path = f"stored/{upload}"
        self.stored.append(path)
        return path


def sequential_ids():
    counter = count(1)
    return lambda: f"q{next(counter)}"


def anagram_payload(*words, randomized=False):
    return {
        "score_per_question": 1,
        "is_question_randomized": randomized,
        "questions": [
            {"question_id": f"q{i}", "correct_word": word, "image_url": f"img/{i}.png"}
            for i, word in enumerate(words, start=1)
        ],
    }


class RegistryTests(SimpleTestCase):
    def test_known_kinds(self):
        self.assertIsInstance(get_handler("anagram"), AnagramHandler)
        self.assertIsInstance(get_handler("matching-pair"), MatchingPairHandler)

    def test_unknown_kind_is_not_found(self):
        with self.assertRaises(NotFoundError):
            get_handler("crossword")


class AnagramBuildTests(SimpleTestCase):
    def setUp(self):
        self.handler = AnagramHandler(id_factory=sequential_ids())

    def test_build_normalizes_and_resolves_images(self):
        store = FakeStore()
        payload = self.handler.build(
            {
                "is_question_randomized": True,
                "questions": [
                    {"correct_word": "cat", "image_index": 1},
                    {"correct_word": " ice cream ", "image_index": 0},
                ],
            },
            ["a.png", "b.png"],
            store,
        )
        self.assertEqual(payload["score_per_question"], 1)
        self.assertTrue(payload["is_question_randomized"])
        self.assertEqual(
            payload["questions"],
            [
                {"question_id": "q1", "correct_word": "CAT", "image_url": "stored/b.png"},
                {"question_id": "q2", "correct_word": "ICE CREAM", "image_url": "stored/a.png"},
            ],
        )

    def test_default_ids_are_unique(self):
        payload = AnagramHandler().build(
            {"questions": [{"correct_word": "a", "image_index": 0}, {"correct_word": "b", "image_index": 1}]},
            ["1", "2"],
            FakeStore(),
        )
        ids = [q["question_id"] for q in payload["questions"]]
        self.assertEqual(len(set(ids)), 2)

    def test_count_mismatch_fails_before_upload(self):
        store = FakeStore()
        with self.assertRaises(ValidationError) as ctx:
            self.handler.build({"questions": [{"correct_word": "cat", "image_index": 0}]}, ["a", "b"], store)
        self.assertEqual(ctx.exception.field, "files_to_upload")
        self.assertEqual(store.stored, [])

    def test_bad_image_index_fails_before_upload(self):
        store = FakeStore()
        with self.assertRaises(ValidationError):
            self.handler.build(
                {"questions": [{"correct_word": "cat", "image_index": 0}, {"correct_word": "dog", "image_index": 5}]},
                ["a", "b"],
                store,
            )
        self.assertEqual(store.stored, [])

    def test_empty_questions_rejected(self):
        with self.assertRaises(ValidationError):
            self.handler.build({"questions": []}, [], FakeStore())


class AnagramPresentTests(SimpleTestCase):
    def test_questions_scrambled_with_hint_limits(self):
        handler = AnagramHandler()
        view = handler.present(anagram_payload("CAT", "ICE CREAM", "ELEPHANTS"), rng=random.Random(3))
        by_id = {q["question_id"]: q for q in view["questions"]}
        self.assertEqual([q["question_id"] for q in view["questions"]], ["q1", "q2", "q3"])
        self.assertEqual(Counter(by_id["q2"]["shuffled_letters"]), Counter("ICECREAM"))
        self.assertNotEqual(by_id["q1"]["shuffled_letters"], "CAT")
        self.assertEqual(by_id["q1"]["hint_limit"], 1)
        self.assertEqual(by_id["q2"]["hint_limit"], 2)
        self.assertEqual(by_id["q3"]["hint_limit"], 2)
        self.assertEqual(by_id["q2"]["correct_word"], "ICE CREAM")
        self.assertEqual(by_id["q2"]["image_url"], "img/2.png")

    def test_randomized_order_keeps_identity(self):
        payload = anagram_payload(*[f"WORD{c}" for c in "ABCDEFGH"], randomized=True)
        view = AnagramHandler().present(payload, rng=random.Random(7))
        stored = {q["question_id"]: q for q in payload["questions"]}
        self.assertEqual(sorted(q["question_id"] for q in view["questions"]), sorted(stored))
        for q in view["questions"]:
            self.assertEqual(q["correct_word"], stored[q["question_id"]]["correct_word"])
            self.assertEqual(q["image_url"], stored[q["question_id"]]["image_url"])

    def test_answers_can_be_withheld(self):
        view = AnagramHandler().present(anagram_payload("CAT"), include_answers=False)
        self.assertNotIn("correct_word", view["questions"][0])


class AnagramScoreTests(SimpleTestCase):
    def setUp(self):
        self.handler = AnagramHandler()
        self.payload = anagram_payload("CAT")

    def answer(self, guessed, hinted=None, question_id="q1"):
        return {"answers": [{"question_id": question_id, "guessed_word": guessed, "is_hinted": hinted or []}]}

    def test_exact_match(self):
        result = self.handler.score(self.payload, self.answer("CAT"))
        self.assertEqual(result["score"], 6)
        self.assertEqual(result["max_score"], 6)
        self.assertEqual(result["percentage"], 100)
        self.assertTrue(result["results"][0]["is_correct"])

    def test_exact_match_is_case_insensitive(self):
        result = self.handler.score(self.payload, self.answer("cat"))
        self.assertEqual(result["score"], 6)
        self.assertEqual(result["results"][0]["guessed_word"], "cat")

    def test_partial_positional_credit(self):
        result = self.handler.score(self.payload, self.answer("COG"))
        self.assertEqual(result["score"], 1)
        self.assertFalse(result["results"][0]["is_correct"])
        self.assertEqual(result["percentage"], 16.67)

    def test_short_guess_scores_available_positions(self):
        self.assertEqual(self.handler.score(self.payload, self.answer("CA"))["score"], 2)
        self.assertEqual(self.handler.score(self.payload, self.answer(""))["score"], 0)

    def test_hints_cap_credit_regardless_of_guess(self):
        for guess in ("CAT", "XYZ"):
            result = self.handler.score(self.payload, self.answer(guess, [True, False, False]))
            self.assertEqual(result["score"], 2)

    def test_all_false_hints_count_as_no_hints(self):
        result = self.handler.score(self.payload, self.answer("CAT", [False, False, False]))
        self.assertEqual(result["score"], 6)

    def test_hint_length_mismatch_names_question(self):
        with self.assertRaises(ValidationError) as ctx:
            self.handler.score(self.payload, self.answer("CAT", [True, False]))
        self.assertIn("q1", ctx.exception.message)

    def test_unknown_question_skipped(self):
        result = self.handler.score(self.payload, self.answer("CAT", question_id="nope"))
        self.assertEqual(result["score"], 0)
        self.assertEqual(result["results"], [])
        self.assertEqual(result["max_score"], 6)

    def test_spaces_do_not_count_as_letters(self):
        payload = anagram_payload("ICE CREAM", "CAT")
        result = self.handler.score(
            payload,
            {"answers": [{"question_id": "q1", "guessed_word": "ice cream", "is_hinted": []}]},
        )
        self.assertEqual(result["score"], 16)
        self.assertEqual(result["max_score"], 22)
        self.assertEqual(result["total_questions"], 2)
        self.assertEqual(result["percentage"], 72.73)

    def test_hint_array_sized_to_letters_not_spaces(self):
        payload = anagram_payload("ICE CREAM")
        hinted = [True] + [False] * 7
        result = self.handler.score(payload, {"answers": [{"question_id": "q1", "guessed_word": "", "is_hinted": hinted}]})
        self.assertEqual(result["score"], 7)

    def test_empty_payload_has_zero_percentage(self):
        result = self.handler.score({"questions": []}, {"answers": []})
        self.assertEqual(result["max_score"], 0)
        self.assertEqual(result["percentage"], 0)

    def test_score_is_idempotent(self):
        payload = anagram_payload("CAT", "HOUSE", "ICE CREAM")
        answers = {
            "answers": [
                {"question_id": "q1", "guessed_word": "CAT", "is_hinted": []},
                {"question_id": "q2", "guessed_word": "HOSUE", "is_hinted": []},
                {"question_id": "q3", "guessed_word": "ICECREAM", "is_hinted": [False, True] + [False] * 6},
            ]
        }
        first = self.handler.score(payload, answers)
        self.assertEqual(first, self.handler.score(payload, answers))
        self.assertEqual(payload, anagram_payload("CAT", "HOUSE", "ICE CREAM"))


class AnagramMergeUpdateTests(SimpleTestCase):
    def setUp(self):
        self.handler = AnagramHandler(id_factory=lambda: "new-id")
        self.payload = anagram_payload("CAT", "DOG")

    def test_omitted_fields_keep_values(self):
        merged, stale = self.handler.merge_update(self.payload, {"is_question_randomized": True}, [], FakeStore())
        self.assertTrue(merged["is_question_randomized"])
        self.assertEqual(merged["questions"], self.payload["questions"])
        self.assertEqual(stale, [])

    def test_replace_questions_reuses_and_drops_images(self):
        store = FakeStore()
        merged, stale = self.handler.merge_update(
            self.payload,
            {
                "questions": [
                    {"question_id": "q1", "correct_word": "cats"},
                    {"correct_word": "bird", "image_index": 0},
                ]
            },
            ["bird.png"],
            store,
        )
        self.assertEqual(
            merged["questions"],
            [
                {"question_id": "q1", "correct_word": "CATS", "image_url": "img/1.png"},
                {"question_id": "new-id", "correct_word": "BIRD", "image_url": "stored/bird.png"},
            ],
        )
        self.assertEqual(stale, ["img/2.png"])

    def test_image_falls_back_to_same_word(self):
        merged, stale = self.handler.merge_update(
            self.payload, {"questions": [{"correct_word": "dog"}]}, [], FakeStore()
        )
        self.assertEqual(merged["questions"][0]["image_url"], "img/2.png")
        self.assertEqual(stale, ["img/1.png"])

    def test_question_without_image_rejected_before_upload(self):
        store = FakeStore()
        with self.assertRaises(ValidationError):
            self.handler.merge_update(
                self.payload,
                {"questions": [{"correct_word": "bird", "image_index": 0}, {"correct_word": "fish"}]},
                ["bird.png"],
                store,
            )
        self.assertEqual(store.stored, [])

    def test_files_without_questions_rejected(self):
        with self.assertRaises(ValidationError):
            self.handler.merge_update(self.payload, {}, ["x.png"], FakeStore())

    def test_duplicate_question_ids_rejected(self):
        with self.assertRaises(ValidationError):
            self.handler.merge_update(
                self.payload,
                {"questions": [{"question_id": "q1", "correct_word": "a"}, {"question_id": "q1", "correct_word": "b"}]},
                [],
                FakeStore(),
            )


class MatchingPairTests(SimpleTestCase):
    def setUp(self):
        self.handler = MatchingPairHandler()
        self.payload = {"countdown": 60, "score_per_match": 10, "images": ["i0", "i1", "i2", "i3"]}

    def test_build_in_upload_order(self):
        payload = self.handler.build({"countdown": 90, "score_per_match": 5}, ["a", "b", "c"], FakeStore())
        self.assertEqual(payload, {"countdown": 90, "score_per_match": 5, "images": ["stored/a", "stored/b", "stored/c"]})

    def test_build_bounds(self):
        for n in (0, 1, 33):
            store = FakeStore()
            with self.assertRaises(ValidationError):
                self.handler.build({"countdown": 60, "score_per_match": 1}, [str(i) for i in range(n)], store)
            self.assertEqual(store.stored, [])
        payload = self.handler.build({"countdown": 60, "score_per_match": 1}, [str(i) for i in range(32)], FakeStore())
        self.assertEqual(len(payload["images"]), 32)

    def test_deck_holds_every_image_twice(self):
        view = self.handler.present(self.payload, rng=random.Random(5))
        deck = view["images"]
        self.assertEqual(len(deck), 8)
        self.assertEqual(Counter(card["id"] for card in deck), Counter({0: 2, 1: 2, 2: 2, 3: 2}))
        for card in deck:
            self.assertEqual(card["image"], self.payload["images"][card["id"]])
        self.assertEqual(view["countdown"], 60)

    def test_valid_score(self):
        result = self.handler.score(self.payload, {"matched_pair_ids": [0, 2]})
        self.assertEqual(result["score"], 20)
        self.assertEqual(result["max_score"], 40)
        self.assertEqual(result["percentage"], 50.0)
        self.assertEqual(result["total_pairs"], 4)
        self.assertEqual(result["matched_pairs_count"], 2)

    def test_duplicates_collapse(self):
        result = self.handler.score(self.payload, {"matched_pair_ids": [1, 1, 1, 3]})
        self.assertEqual(result["score"], 20)

    def test_out_of_range_fails_before_scoring(self):
        with self.assertRaises(ValidationError) as ctx:
            self.handler.score(self.payload, {"matched_pair_ids": [0, 1, 1, 5]})
        self.assertIn("5", ctx.exception.message)

    def test_score_within_bounds(self):
        rng = random.Random(11)
        for _ in range(50):
            ids = [rng.randrange(4) for _ in range(rng.randrange(10))]
            result = self.handler.score(self.payload, {"matched_pair_ids": ids})
            self.assertTrue(0 <= result["score"] <= result["max_score"])
            self.assertEqual(result["max_score"], 40)

    def test_merge_keeps_all_when_selection_absent(self):
        merged, stale = self.handler.merge_update(self.payload, {"countdown": 30}, ["new"], FakeStore())
        self.assertEqual(merged["images"], ["i0", "i1", "i2", "i3", "stored/new"])
        self.assertEqual(merged["countdown"], 30)
        self.assertEqual(merged["score_per_match"], 10)
        self.assertEqual(stale, [])

        merged, _ = self.handler.merge_update(self.payload, {"existing_images": KEEP_ALL_IMAGES}, [], FakeStore())
        self.assertEqual(merged["images"], self.payload["images"])

    def test_merge_explicit_empty_drops_all(self):
        merged, stale = self.handler.merge_update(self.payload, {"existing_images": []}, ["a", "b"], FakeStore())
        self.assertEqual(merged["images"], ["stored/a", "stored/b"])
        self.assertEqual(stale, ["i0", "i1", "i2", "i3"])

    def test_merge_subset(self):
        merged, stale = self.handler.merge_update(self.payload, {"existing_images": ["i2", "i0"]}, [], FakeStore())
        self.assertEqual(merged["images"], ["i2", "i0"])
        self.assertEqual(stale, ["i1", "i3"])

    def test_merge_unknown_image_rejected(self):
        with self.assertRaises(ValidationError):
            self.handler.merge_update(self.payload, {"existing_images": ["elsewhere.png"]}, [], FakeStore())

    def test_merge_capacity_checked_before_upload(self):
        store = FakeStore()
        with self.assertRaises(ValidationError):
            self.handler.merge_update(self.payload, {}, [str(i) for i in range(29)], store)
        self.assertEqual(store.stored, [])

    def test_assets_are_unique(self):
        payload = dict(self.payload, images=["a", "b", "a"])
        self.assertEqual(self.handler.assets(payload), ["a", "b"])
