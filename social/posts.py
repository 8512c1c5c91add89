"""
social/posts.py -- Post feed flows with ownership checks.

Ownership rules:
  - A post may be deleted only by its author (post.user_id).
  - A comment may be deleted only by its author (comment.user_id). The
    post's author has no special right over other people's comments.

Likes behave as a set keyed by user id: like() refuses a second like from
the same user, unlike() refuses a user who has not liked. New likes are
prepended (most recent first); comments are appended (oldest first).

Every mutation is read post -> edit list -> save_post(). See the
concurrency note in social/store.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from auth.models import User
from auth.store import UserStore
from core.errors import AlreadyLiked, Forbidden, NotFound, NotLiked, Violations
from core.ids import EntityId, new_id, parse_id
from social.models import Comment, Like, Post
from social.store import SocialStore

logger = logging.getLogger("devconnect.social")


def _acting_user(users: UserStore, user_id: EntityId) -> User:
    user = users.get_by_id(user_id)
    if user is None:
        raise NotFound("User not found!")
    return user


def get_post(store: SocialStore, raw_post_id: str | EntityId) -> Post:
    """Raises MalformedIdentifier for a bad id, NotFound for an unknown one."""
    post = store.get_post(parse_id(raw_post_id))
    if post is None:
        raise NotFound("Post not found!")
    return post


def list_posts(store: SocialStore) -> list[Post]:
    return store.list_posts()


def create_post(store: SocialStore, users: UserStore, user_id: EntityId, text: str | None) -> Post:
    """Create a post, snapshotting the author's current name and avatar."""
    v = Violations()
    v.require(text, "text", "Text is required!")
    v.raise_if_any()

    author = _acting_user(users, user_id)
    post_id = store.create_post(Post(user_id=user_id, text=text, name=author.name, avatar=author.avatar))
    return store.get_post(post_id)


def delete_post(store: SocialStore, raw_post_id: str | EntityId, user_id: EntityId) -> None:
    post = get_post(store, raw_post_id)
    if post.user_id != user_id:
        raise Forbidden()
    store.delete_post(post.id)
    logger.info("Post %s removed by %s", post.id, user_id)


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


def _liked_by(post: Post, user_id: EntityId) -> bool:
    return any(like.user_id == user_id for like in post.likes)


def like(store: SocialStore, raw_post_id: str | EntityId, user_id: EntityId) -> list[Like]:
    """Add user_id to the front of the post's likes. AlreadyLiked if present."""
    post = get_post(store, raw_post_id)
    if _liked_by(post, user_id):
        raise AlreadyLiked()
    post.likes.insert(0, Like(user_id=user_id))
    store.save_post(post)
    return post.likes


def unlike(store: SocialStore, raw_post_id: str | EntityId, user_id: EntityId) -> list[Like]:
    """Remove user_id's like, keeping the others in order. NotLiked if absent."""
    post = get_post(store, raw_post_id)
    if not _liked_by(post, user_id):
        raise NotLiked()
    index = next(i for i, like_ in enumerate(post.likes) if like_.user_id == user_id)
    del post.likes[index]
    store.save_post(post)
    return post.likes


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def add_comment(
    store: SocialStore,
    users: UserStore,
    raw_post_id: str | EntityId,
    user_id: EntityId,
    text: str | None,
) -> Post:
    """Append a comment to the end of the post's comments."""
    v = Violations()
    v.require(text, "text", "Text is required!")
    v.raise_if_any()

    author = _acting_user(users, user_id)
    post = get_post(store, raw_post_id)
    post.comments.append(
        Comment(
            id=new_id(),
            user_id=user_id,
            text=text,
            name=author.name,
            avatar=author.avatar,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
    )
    store.save_post(post)
    return post


def remove_comment(
    store: SocialStore,
    raw_post_id: str | EntityId,
    raw_comment_id: str | EntityId,
    user_id: EntityId,
) -> Post:
    """Delete a comment. NotFound if it does not exist, Forbidden if not the author's."""
    post = get_post(store, raw_post_id)
    comment_id = parse_id(raw_comment_id)
    index = next((i for i, c in enumerate(post.comments) if c.id == comment_id), -1)
    if index == -1:
        raise NotFound("This comment is not exists!")
    if post.comments[index].user_id != user_id:
        raise Forbidden()
    del post.comments[index]
    store.save_post(post)
    return post
