import json
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework.test import APITestCase

from games.assets import AssetBatch
from games.models import Game, GameScore, GameTemplate
from games.seed_utils import ensure_templates
from games.services import collect_game_assets


def image(name="pic.png"):
    return SimpleUploadedFile(name, b"\x89PNG\r\n\x1a\nfake", content_type="image/png")


class GameApiTestCase(APITestCase):
    def setUp(self):
        ensure_templates()
        User = get_user_model()
        self.owner = User.objects.create_user(username="owner", password="pw")
        self.other = User.objects.create_user(username="other", password="pw")
        self.admin = User.objects.create_superuser(username="admin", password="pw", email="a@example.com")
        self.client.force_authenticate(self.owner)

    def create_anagram(self, name="Animals", words=("cat", "ice cream"), publish=True):
        data = {
            "name": name,
            "description": "Guess the animal",
            "is_publish_immediately": "true" if publish else "false",
            "is_question_randomized": "false",
            "questions": json.dumps([{"correct_word": w, "image_index": i} for i, w in enumerate(words)]),
            "files_to_upload": [image(f"{i}.png") for i in range(len(words))],
            "thumbnail_image": image("thumb.png"),
        }
        return self.client.post(reverse("game-create", kwargs={"kind": "anagram"}), data, format="multipart")

    def create_matching_pair(self, name="Fruits", count=4, publish=True):
        data = {
            "name": name,
            "is_publish_immediately": "true" if publish else "false",
            "countdown": 60,
            "score_per_match": 10,
            "files_to_upload": [image(f"fruit{i}.png") for i in range(count)],
            "thumbnail_image": image("thumb.png"),
        }
        return self.client.post(reverse("game-create", kwargs={"kind": "matching-pair"}), data, format="multipart")

    def url(self, name, kind, game_id):
        return reverse(name, kwargs={"kind": kind, "game_id": game_id})


class AnagramFlowTests(GameApiTestCase):
    def test_create_anagram(self):
        resp = self.create_anagram()
        self.assertEqual(resp.status_code, 201)
        game = Game.objects.get(pk=resp.json()["id"])
        self.assertEqual(game.kind, "anagram")
        self.assertEqual(game.creator, self.owner)
        self.assertTrue(game.is_published)
        words = [q["correct_word"] for q in game.payload["questions"]]
        self.assertEqual(words, ["CAT", "ICE CREAM"])
        for q in game.payload["questions"]:
            self.assertTrue(default_storage.exists(q["image_url"]))
        self.assertTrue(default_storage.exists(game.thumbnail_image))

    def test_question_file_mismatch(self):
        data = {
            "name": "Broken",
            "questions": json.dumps([{"correct_word": "cat", "image_index": 0}]),
            "files_to_upload": [image("a.png"), image("b.png")],
        }
        resp = self.client.post(reverse("game-create", kwargs={"kind": "anagram"}), data, format="multipart")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["field"], "files_to_upload")
        self.assertFalse(Game.objects.filter(name="Broken").exists())

    def test_duplicate_name_conflicts(self):
        self.assertEqual(self.create_anagram(name="Same").status_code, 201)
        resp = self.create_anagram(name="Same")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(Game.objects.filter(name="Same").count(), 1)

    def test_unknown_kind_not_found(self):
        resp = self.client.post(reverse("game-create", kwargs={"kind": "crossword"}), {"name": "x"}, format="multipart")
        self.assertEqual(resp.status_code, 404)

    def test_play_views(self):
        game_id = self.create_anagram(publish=False).json()["id"]

        self.client.force_authenticate(None)
        resp = self.client.get(self.url("game-play-public", "anagram", game_id))
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(self.owner)
        private = self.client.get(self.url("game-play-private", "anagram", game_id))
        self.assertEqual(private.status_code, 200)
        self.assertIn("correct_word", private.json()["questions"][0])

        self.client.force_authenticate(self.other)
        self.assertEqual(self.client.get(self.url("game-play-private", "anagram", game_id)).status_code, 403)

        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.get(self.url("game-play-private", "anagram", game_id)).status_code, 200)

        Game.objects.filter(pk=game_id).update(is_published=True)
        self.client.force_authenticate(None)
        public = self.client.get(self.url("game-play-public", "anagram", game_id))
        self.assertEqual(public.status_code, 200)
        body = public.json()
        self.assertEqual(body["id"], game_id)
        for q in body["questions"]:
            self.assertNotIn("correct_word", q)
            self.assertIn("shuffled_letters", q)
        self.assertEqual(sorted(q["hint_limit"] for q in body["questions"]), [1, 2])

    def test_wrong_kind_is_not_found(self):
        game_id = self.create_anagram().json()["id"]
        resp = self.client.get(self.url("game-play-public", "matching-pair", game_id))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.client.get(self.url("game-detail", "matching-pair", game_id)).status_code, 404)

    def test_check_answers(self):
        game_id = self.create_anagram(words=("cat",)).json()["id"]
        question_id = Game.objects.get(pk=game_id).payload["questions"][0]["question_id"]
        url = self.url("game-check", "anagram", game_id)

        resp = self.client.post(url, {"answers": [{"question_id": question_id, "guessed_word": "cat"}]}, format="json")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["game_id"], game_id)
        self.assertEqual(body["score"], 6)
        self.assertEqual(body["percentage"], 100)
        self.assertTrue(body["results"][0]["is_correct"])

        self.client.force_authenticate(None)
        resp = self.client.post(url, {"answers": [{"question_id": question_id, "guessed_word": "dog"}]}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["results"][0]["is_correct"])
        self.assertEqual(resp.json()["results"][0]["correct_word"], "CAT")

        resp = self.client.post(
            url,
            {"answers": [{"question_id": question_id, "guessed_word": "cat", "is_hinted": [True, False]}]},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn(question_id, resp.json()["error"])

    def test_detail_update_and_delete(self):
        game_id = self.create_anagram().json()["id"]
        game = Game.objects.get(pk=game_id)
        old_paths = collect_game_assets(game)
        cat = game.payload["questions"][0]

        self.client.force_authenticate(self.other)
        self.assertEqual(self.client.get(self.url("game-detail", "anagram", game_id)).status_code, 403)

        self.client.force_authenticate(self.owner)
        detail = self.client.get(self.url("game-detail", "anagram", game_id))
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.json()["kind"], "anagram")

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.patch(
                self.url("game-detail", "anagram", game_id),
                {
                    "name": "Animals v2",
                    "questions": json.dumps(
                        [
                            {"question_id": cat["question_id"], "correct_word": "cat"},
                            {"correct_word": "dog", "image_index": 0},
                        ]
                    ),
                    "files_to_upload": [image("dog.png")],
                },
                format="multipart",
            )
        self.assertEqual(resp.status_code, 200)
        game.refresh_from_db()
        self.assertEqual(game.name, "Animals v2")
        self.assertTrue(game.is_published)
        self.assertEqual([q["correct_word"] for q in game.payload["questions"]], ["CAT", "DOG"])
        self.assertEqual(game.payload["questions"][0], cat)
        ice_cream_image = old_paths[1]
        self.assertFalse(default_storage.exists(ice_cream_image))
        self.assertTrue(default_storage.exists(cat["image_url"]))

        paths = collect_game_assets(game)
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.delete(self.url("game-detail", "anagram", game_id))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Game.objects.filter(pk=game_id).exists())
        for path in paths:
            self.assertFalse(default_storage.exists(path))


class MatchingPairFlowTests(GameApiTestCase):
    def test_image_bounds(self):
        self.assertEqual(self.create_matching_pair(name="Too few", count=1).status_code, 400)
        self.assertEqual(self.create_matching_pair(name="Too many", count=33).status_code, 400)
        self.assertFalse(Game.objects.exists())

    def test_play_and_check(self):
        game_id = self.create_matching_pair().json()["id"]
        public = self.client.get(self.url("game-play-public", "matching-pair", game_id)).json()
        self.assertEqual(len(public["images"]), 8)
        self.assertEqual(public["countdown"], 60)

        url = self.url("game-check", "matching-pair", game_id)
        resp = self.client.post(url, {"matched_pair_ids": [0, 2]}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["score"], 20)
        self.assertEqual(resp.json()["max_score"], 40)
        self.assertEqual(resp.json()["percentage"], 50.0)

        resp = self.client.post(url, {"matched_pair_ids": [0, 1, 1, 5]}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["field"], "matched_pair_ids")

    def test_update_images(self):
        game_id = self.create_matching_pair().json()["id"]
        game = Game.objects.get(pk=game_id)
        old_images = list(game.payload["images"])
        url = self.url("game-detail", "matching-pair", game_id)

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.patch(url, {"score_per_match": 5, "files_to_upload": [image("new.png")]}, format="multipart")
        self.assertEqual(resp.status_code, 200)
        game.refresh_from_db()
        self.assertEqual(game.payload["images"][:4], old_images)
        self.assertEqual(len(game.payload["images"]), 5)
        self.assertEqual(game.payload["score_per_match"], 5)
        self.assertEqual(game.payload["countdown"], 60)

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.patch(url, {"existing_images": [old_images[1]]}, format="json")
        self.assertEqual(resp.status_code, 200)
        game.refresh_from_db()
        self.assertEqual(game.payload["images"], [old_images[1]])
        self.assertFalse(default_storage.exists(old_images[0]))

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.patch(
                url,
                {"clear_existing_images": "true", "files_to_upload": [image("a.png"), image("b.png")]},
                format="multipart",
            )
        self.assertEqual(resp.status_code, 200)
        game.refresh_from_db()
        self.assertEqual(len(game.payload["images"]), 2)
        self.assertNotIn(old_images[1], game.payload["images"])
        self.assertFalse(default_storage.exists(old_images[1]))

    def test_update_over_capacity(self):
        game_id = self.create_matching_pair().json()["id"]
        resp = self.client.patch(
            self.url("game-detail", "matching-pair", game_id),
            {"files_to_upload": [image(f"x{i}.png") for i in range(29)]},
            format="multipart",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(len(Game.objects.get(pk=game_id).payload["images"]), 4)

    def test_update_by_stranger_forbidden(self):
        game_id = self.create_matching_pair().json()["id"]
        self.client.force_authenticate(self.other)
        resp = self.client.patch(self.url("game-detail", "matching-pair", game_id), {"countdown": 30}, format="json")
        self.assertEqual(resp.status_code, 403)


class ScoreAndLeaderboardTests(GameApiTestCase):
    def submit(self, game_id, score, time_taken):
        return self.client.post(
            reverse("score-create"),
            {"game_id": game_id, "score": score, "time_taken": time_taken, "matched_pairs": 2, "total_pairs": 4},
            format="json",
        )

    def test_record_requires_published_game(self):
        game_id = self.create_matching_pair(publish=False).json()["id"]
        self.assertEqual(self.submit(game_id, 10, 5).status_code, 404)
        self.assertEqual(GameScore.objects.count(), 0)

    def test_leaderboard_order_and_best(self):
        game_id = self.create_matching_pair().json()["id"]
        self.assertEqual(self.submit(game_id, 100, 30).status_code, 201)
        self.client.force_authenticate(self.other)
        self.submit(game_id, 100, 20)
        self.submit(game_id, 90, 10)

        self.client.force_authenticate(None)
        resp = self.client.get(reverse("score-leaderboard", kwargs={"game_id": game_id}), {"per_page": 2})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual([(e["score"], e["time_taken"]) for e in body["data"]], [(100, 20), (100, 30)])
        self.assertEqual(body["data"][0]["user"]["username"], "other")
        self.assertEqual(body["meta"]["total"], 3)
        self.assertEqual(body["meta"]["last_page"], 2)
        self.assertEqual(body["meta"]["next"], 2)

        self.client.force_authenticate(self.other)
        best = self.client.get(reverse("score-best", kwargs={"game_id": game_id})).json()["data"]
        self.assertEqual((best["score"], best["time_taken"]), (100, 20))

        self.client.force_authenticate(self.admin)
        self.assertIsNone(self.client.get(reverse("score-best", kwargs={"game_id": game_id})).json()["data"])

    def test_leaderboard_unknown_game(self):
        resp = self.client.get(reverse("score-leaderboard", kwargs={"game_id": "00000000-0000-0000-0000-000000000000"}))
        self.assertEqual(resp.status_code, 404)

    def test_scores_are_immutable(self):
        game_id = self.create_matching_pair().json()["id"]
        self.submit(game_id, 10, 5)
        attempt = GameScore.objects.get()
        attempt.score = 999
        with self.assertRaises(ValueError):
            attempt.save()


class SupportTests(GameApiTestCase):
    def test_templates_listed(self):
        resp = self.client.get(reverse("game-templates"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(sorted(t["slug"] for t in resp.json()), ["anagram", "matching-pair"])
        self.assertEqual(ensure_templates(), 0)
        self.assertEqual(GameTemplate.objects.count(), 2)

    def test_asset_batch_rolls_back_on_error(self):
        with self.assertRaises(RuntimeError):
            with AssetBatch("anagram", "rollback") as batch:
                path = batch.store(image("gone.png"))
                self.assertTrue(default_storage.exists(path))
                raise RuntimeError("boom")
        self.assertFalse(default_storage.exists(path))

    def test_delete_collects_every_asset_once(self):
        game_id = self.create_matching_pair().json()["id"]
        game = Game.objects.get(pk=game_id)
        paths = collect_game_assets(game)
        self.assertEqual(len(paths), 5)
        self.assertEqual(set(paths), set(game.payload["images"]) | {game.thumbnail_image})

    def test_duplicate_name_caught_by_unique_index_removes_uploads(self):
        self.assertEqual(self.create_anagram(name="Twins").status_code, 201)

        stored = []
        original_store = AssetBatch.store

        def record(batch, upload):
            path = original_store(batch, upload)
            stored.append(path)
            return path

        with mock.patch("games.services._check_name_available"), mock.patch.object(
            AssetBatch, "store", autospec=True, side_effect=record
        ):
            resp = self.create_anagram(name="Twins")

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["field"], "name")
        self.assertEqual(Game.objects.filter(name="Twins").count(), 1)
        self.assertEqual(len(stored), 3)
        self.assertFalse(any(default_storage.exists(path) for path in stored))
