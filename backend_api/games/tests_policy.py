from types import SimpleNamespace

from django.test import SimpleTestCase

from games.engine import (
    AuthorizationError,
    NotFoundError,
    Requester,
    can_view_private,
    can_view_public,
    ensure_can_manage,
    ensure_can_play,
    ensure_kind,
)


def game(kind="anagram", creator_id=1, is_published=False):
    return SimpleNamespace(kind=kind, creator_id=creator_id, is_published=is_published)


class AccessPolicyTests(SimpleTestCase):
    def test_private_view(self):
        g = game(creator_id=7)
        self.assertTrue(can_view_private(g, Requester(user_id=7)))
        self.assertTrue(can_view_private(g, Requester(user_id=8, is_admin=True)))
        self.assertFalse(can_view_private(g, Requester(user_id=8)))
        self.assertFalse(can_view_private(g, Requester()))

    def test_public_view(self):
        self.assertTrue(can_view_public(game(is_published=True)))
        self.assertFalse(can_view_public(game(is_published=False)))

    def test_kind_mismatch_is_not_found(self):
        with self.assertRaises(NotFoundError):
            ensure_kind(game(kind="matching-pair"), "anagram")
        with self.assertRaises(NotFoundError):
            ensure_kind(None, "anagram")
        g = game()
        self.assertIs(ensure_kind(g, "anagram"), g)

    def test_manage_requires_creator_or_admin(self):
        with self.assertRaises(AuthorizationError):
            ensure_can_manage(game(creator_id=1), Requester(user_id=2))
        ensure_can_manage(game(creator_id=1), Requester(user_id=1))

    def test_play_rules(self):
        with self.assertRaises(AuthorizationError):
            ensure_can_play(game(is_published=False), Requester(user_id=1), is_public=True)
        ensure_can_play(game(is_published=True), Requester(), is_public=True)
        ensure_can_play(game(creator_id=1, is_published=False), Requester(user_id=1), is_public=False)
        with self.assertRaises(AuthorizationError):
            ensure_can_play(game(creator_id=1, is_published=True), Requester(user_id=2), is_public=False)

    def test_requester_from_user(self):
        anonymous = SimpleNamespace(is_authenticated=False)
        self.assertEqual(Requester.from_user(anonymous), Requester())
        admin = SimpleNamespace(is_authenticated=True, pk=3, is_superuser=True)
        self.assertEqual(Requester.from_user(admin), Requester(user_id=3, is_admin=True))
