"""Tests for the like/dislike state machine."""

from uuid import UUID, uuid4

import pytest

from blogapi.posts.models import Post, create_post
from blogapi.posts.reactions import (
    ReactionState,
    ReactionType,
    apply_reaction,
    reaction_state,
    toggle_dislike,
    toggle_like,
)


def assert_consistent(post: Post) -> None:
    """Tallies match their sets and no user holds both reactions."""
    assert post.likes == len(post.liked_by)
    assert post.dislikes == len(post.disliked_by)
    assert not post.liked_by & post.disliked_by


@pytest.fixture
def post() -> Post:
    return create_post("Title", "Body")


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


class TestToggleLike:
    """Transitions driven by the like button."""

    def test_none_to_liked(self, post: Post, user_id: UUID) -> None:
        assert toggle_like(post, user_id) is ReactionState.LIKED
        assert post.likes == 1
        assert user_id in post.liked_by
        assert_consistent(post)

    def test_like_twice_restores_state(self, post: Post, user_id: UUID) -> None:
        toggle_like(post, user_id)
        assert toggle_like(post, user_id) is ReactionState.NONE

        assert post.likes == 0
        assert post.liked_by == set()
        assert reaction_state(post, user_id) is ReactionState.NONE
        assert_consistent(post)

    def test_disliked_to_liked(self, post: Post, user_id: UUID) -> None:
        toggle_dislike(post, user_id)
        assert toggle_like(post, user_id) is ReactionState.LIKED

        assert post.likes == 1
        assert post.dislikes == 0
        assert user_id not in post.disliked_by
        assert_consistent(post)


class TestToggleDislike:
    """Transitions driven by the dislike button."""

    def test_none_to_disliked(self, post: Post, user_id: UUID) -> None:
        assert toggle_dislike(post, user_id) is ReactionState.DISLIKED
        assert post.dislikes == 1
        assert_consistent(post)

    def test_dislike_twice_restores_state(self, post: Post, user_id: UUID) -> None:
        toggle_dislike(post, user_id)
        assert toggle_dislike(post, user_id) is ReactionState.NONE
        assert post.dislikes == 0
        assert_consistent(post)

    def test_like_then_dislike_switches(self, post: Post, user_id: UUID) -> None:
        """Dislikes go up by one and likes end where they started."""
        other = uuid4()
        toggle_like(post, other)
        likes_before = post.likes
        dislikes_before = post.dislikes

        toggle_like(post, user_id)
        toggle_dislike(post, user_id)

        assert post.dislikes == dislikes_before + 1
        assert post.likes == likes_before
        assert reaction_state(post, user_id) is ReactionState.DISLIKED
        assert_consistent(post)


class TestManyUsers:
    """Reactions of different users do not interfere."""

    def test_independent_users(self, post: Post) -> None:
        users = [uuid4() for _ in range(5)]
        for u in users[:3]:
            toggle_like(post, u)
        for u in users[2:]:
            toggle_dislike(post, u)

        assert post.likes == 2
        assert post.dislikes == 3
        assert reaction_state(post, users[2]) is ReactionState.DISLIKED
        assert_consistent(post)

    def test_invariants_hold_for_any_press_sequence(self, post: Post) -> None:
        users = [uuid4() for _ in range(3)]
        presses = [
            (0, ReactionType.LIKE),
            (1, ReactionType.DISLIKE),
            (0, ReactionType.DISLIKE),
            (2, ReactionType.LIKE),
            (1, ReactionType.LIKE),
            (0, ReactionType.DISLIKE),
            (2, ReactionType.LIKE),
            (1, ReactionType.DISLIKE),
        ]
        for index, reaction in presses:
            apply_reaction(post, users[index], reaction)
            assert_consistent(post)

        assert reaction_state(post, users[0]) is ReactionState.NONE
        assert reaction_state(post, users[1]) is ReactionState.DISLIKED
        assert reaction_state(post, users[2]) is ReactionState.NONE
