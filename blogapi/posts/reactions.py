"""Like/dislike state machine for posts.

Each user is in exactly one of three states toward a post: no reaction,
liked or disliked. Pressing the button of the current state clears it;
pressing the other button switches over. Tallies always equal the size
of the matching user-id set.

These functions mutate a Post in memory only; persisting the change is
the service's job.
"""

from enum import Enum
from uuid import UUID

from blogapi.posts.models import Post


class ReactionState(str, Enum):
    """A user's reaction toward a post."""

    NONE = "none"
    LIKED = "liked"
    DISLIKED = "disliked"


class ReactionType(str, Enum):
    """Reaction a user can send."""

    LIKE = "like"
    DISLIKE = "dislike"


def reaction_state(post: Post, user_id: UUID) -> ReactionState:
    """Return the current reaction state of a user toward a post."""
    if user_id in post.liked_by:
        return ReactionState.LIKED
    if user_id in post.disliked_by:
        return ReactionState.DISLIKED
    return ReactionState.NONE


def _add_like(post: Post, user_id: UUID) -> None:
    post.liked_by.add(user_id)
    post.likes += 1


def _remove_like(post: Post, user_id: UUID) -> None:
    post.liked_by.discard(user_id)
    post.likes -= 1


def _add_dislike(post: Post, user_id: UUID) -> None:
    post.disliked_by.add(user_id)
    post.dislikes += 1


def _remove_dislike(post: Post, user_id: UUID) -> None:
    post.disliked_by.discard(user_id)
    post.dislikes -= 1


def toggle_like(post: Post, user_id: UUID) -> ReactionState:
    """Apply a like press.

    none -> liked, liked -> none, disliked -> liked.
    """
    state = reaction_state(post, user_id)
    if state is ReactionState.LIKED:
        _remove_like(post, user_id)
        return ReactionState.NONE
    if state is ReactionState.DISLIKED:
        _remove_dislike(post, user_id)
    _add_like(post, user_id)
    return ReactionState.LIKED


def toggle_dislike(post: Post, user_id: UUID) -> ReactionState:
    """Apply a dislike press.

    none -> disliked, disliked -> none, liked -> disliked.
    """
    state = reaction_state(post, user_id)
    if state is ReactionState.DISLIKED:
        _remove_dislike(post, user_id)
        return ReactionState.NONE
    if state is ReactionState.LIKED:
        _remove_like(post, user_id)
    _add_dislike(post, user_id)
    return ReactionState.DISLIKED


def apply_reaction(post: Post, user_id: UUID, reaction: ReactionType) -> ReactionState:
    """Dispatch a reaction press to the matching toggle."""
    if reaction is ReactionType.LIKE:
        return toggle_like(post, user_id)
    return toggle_dislike(post, user_id)
