"""
api/routes/v1/posts.py -- Posts feed REST endpoints.

Routes:
  POST   /posts                              -- create a post
  GET    /posts                              -- all posts, newest first
  GET    /posts/{post_id}                    -- one post
  DELETE /posts/{post_id}                    -- delete own post (403 otherwise)
  PUT    /posts/like/{post_id}               -- like; 400 already_liked
  PUT    /posts/unlike/{post_id}             -- unlike; 400 not_liked
  POST   /posts/comment/{post_id}            -- append a comment
  DELETE /posts/comment/{post_id}/{comment_id} -- delete own comment (403 otherwise)

Every route requires authentication. Ids arrive as raw path text and are
parsed by the flow functions, so a malformed id is a 404 malformed_id and an
unknown one a 404 not_found.
"""

from fastapi import APIRouter, Depends, Request

from api.models import CommentCreate, LikeRow, MessageResponse, PostCreate, PostResponse
from auth.dependencies import get_current_user_id
from core.ids import EntityId
from social import posts
from social.store import SocialStore

# Router-level dependency: every route on this router runs the auth gate.
router = APIRouter(dependencies=[Depends(get_current_user_id)])


def _acting(request: Request) -> EntityId:
    # Set by get_current_user_id, which the router dependency has already run.
    return request.state.user_id


@router.post("/posts", response_model=PostResponse)
def create_post(request: Request, body: PostCreate) -> PostResponse:
    store: SocialStore = request.app.state.social_store
    post = posts.create_post(store, request.app.state.user_store, _acting(request), body.text)
    return PostResponse.from_domain(post)


@router.get("/posts", response_model=list[PostResponse])
def list_posts(request: Request) -> list[PostResponse]:
    store: SocialStore = request.app.state.social_store
    return [PostResponse.from_domain(p) for p in posts.list_posts(store)]


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(request: Request, post_id: str) -> PostResponse:
    store: SocialStore = request.app.state.social_store
    return PostResponse.from_domain(posts.get_post(store, post_id))


@router.delete("/posts/{post_id}", response_model=MessageResponse)
def delete_post(request: Request, post_id: str) -> MessageResponse:
    store: SocialStore = request.app.state.social_store
    posts.delete_post(store, post_id, _acting(request))
    return MessageResponse(message="Post removed!")


@router.put("/posts/like/{post_id}", response_model=list[LikeRow])
def like_post(request: Request, post_id: str) -> list[LikeRow]:
    store: SocialStore = request.app.state.social_store
    likes = posts.like(store, post_id, _acting(request))
    return [LikeRow(user=like.user_id) for like in likes]


@router.put("/posts/unlike/{post_id}", response_model=list[LikeRow])
def unlike_post(request: Request, post_id: str) -> list[LikeRow]:
    store: SocialStore = request.app.state.social_store
    likes = posts.unlike(store, post_id, _acting(request))
    return [LikeRow(user=like.user_id) for like in likes]


@router.post("/posts/comment/{post_id}", response_model=PostResponse)
def add_comment(request: Request, post_id: str, body: CommentCreate) -> PostResponse:
    store: SocialStore = request.app.state.social_store
    post = posts.add_comment(store, request.app.state.user_store, post_id, _acting(request), body.text)
    return PostResponse.from_domain(post)


@router.delete("/posts/comment/{post_id}/{comment_id}", response_model=PostResponse)
def remove_comment(request: Request, post_id: str, comment_id: str) -> PostResponse:
    store: SocialStore = request.app.state.social_store
    post = posts.remove_comment(store, post_id, comment_id, _acting(request))
    return PostResponse.from_domain(post)
