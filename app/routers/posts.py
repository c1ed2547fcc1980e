import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.models.payloads import CommentPayload, PostPayload, PostUpdatePayload, SharePayload
from app.models.response import Pagination
from app.models.schemas import CommentModel, LikeModel, PostModel, ShareModel, accepted_connections, post_view
from app.services.ai_service import AIService, get_ai_service
from app.services.db import posts_coll
from app.utils.auth import get_current_user
from app.utils.exceptions import ExceptionContext
from app.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


async def _get_post(post_id: str) -> Dict[str, Any]:
    post = await posts_coll.find_one({"post_id": post_id})
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _can_view(post: Dict[str, Any], user: Dict[str, Any]) -> bool:
    if post.get("author_id") == user["user_id"] or post.get("visibility", "public") == "public":
        return True
    if post.get("visibility") == "connections":
        return any(c.get("user_id") == post.get("author_id") for c in accepted_connections(user))
    return False


@router.post("/", status_code=201)
async def create_post(
    payload: PostPayload,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service)
):
    """Create a post; sentiment and suggested tags come from the AI service or its fallbacks"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    loop = asyncio.get_running_loop()
    sentiment = await loop.run_in_executor(None, ai.analyze_sentiment, payload.content)
    suggested_tags = await loop.run_in_executor(None, ai.generate_post_tags, payload.content, payload.category)

    post = PostModel(
        author_id=current_user["user_id"],
        sentiment=sentiment,
        suggested_tags=suggested_tags,
        **payload.dict()
    ).dict()

    with ExceptionContext("create_post", logger, request_id=request_id):
        await posts_coll.insert_one(post)

    logger.info(f"Post {post['post_id']} created by {current_user['user_id']}", extra={"request_id": request_id})
    return {"success": True, "message": "Post created successfully", "data": post_view(post, current_user["user_id"])}


@router.get("/feed")
async def get_feed(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[str] = None,
    category: Optional[str] = None,
    tags: Optional[str] = Query(None, description="Comma separated tags"),
    following: bool = False,
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    """Public posts and the caller's own, plus connections-only posts of accepted connections when following"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    user_id = current_user["user_id"]
    visible = [{"visibility": "public"}, {"author_id": user_id}]

    if following:
        connection_ids = [c["user_id"] for c in accepted_connections(current_user)]
        if connection_ids:
            visible.append({"author_id": {"$in": connection_ids}, "visibility": {"$in": ["public", "connections"]}})

    query: Dict[str, Any] = {"$or": visible}
    if type:
        query["type"] = type
    if category:
        query["category"] = category
    if tags:
        query["tags"] = {"$in": [t.strip() for t in tags.split(",") if t.strip()]}

    with ExceptionContext("get_feed", logger, request_id=request_id):
        cursor = posts_coll.find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
        posts = await cursor.to_list(length=limit)
        total = await posts_coll.count_documents(query)

    return {
        "success": True,
        "data": [post_view(p, user_id) for p in posts],
        "pagination": Pagination.build(page, limit, total).dict(),
    }


@router.get("/my/posts")
async def my_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(get_current_user)
):
    query = {"author_id": current_user["user_id"]}
    cursor = posts_coll.find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
    posts = await cursor.to_list(length=limit)
    total = await posts_coll.count_documents(query)

    return {
        "success": True,
        "data": [post_view(p, current_user["user_id"]) for p in posts],
        "pagination": Pagination.build(page, limit, total).dict(),
    }


@router.get("/{post_id}")
async def get_post(post_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    post = await _get_post(post_id)
    if not _can_view(post, current_user):
        raise HTTPException(status_code=403, detail="You don't have permission to view this post")

    await posts_coll.update_one({"post_id": post_id}, {"$inc": {"views": 1}})
    post["views"] = post.get("views", 0) + 1
    return {"success": True, "data": post_view(post, current_user["user_id"])}


@router.post("/{post_id}/like")
async def toggle_like(post_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    post = await _get_post(post_id)
    user_id = current_user["user_id"]
    liked = any(l.get("user_id") == user_id for l in post.get("likes") or [])

    if liked:
        await posts_coll.update_one({"post_id": post_id}, {"$pull": {"likes": {"user_id": user_id}}})
        like_count = len(post.get("likes") or []) - 1
    else:
        await posts_coll.update_one({"post_id": post_id}, {"$push": {"likes": LikeModel(user_id=user_id).dict()}})
        like_count = len(post.get("likes") or []) + 1

    return {
        "success": True,
        "message": "Post unliked" if liked else "Post liked",
        "is_liked": not liked,
        "like_count": like_count,
    }


@router.post("/{post_id}/comments", status_code=201)
async def add_comment(post_id: str, payload: CommentPayload, current_user: Dict[str, Any] = Depends(get_current_user)):
    post = await _get_post(post_id)
    if not post.get("is_commenting_enabled", True):
        raise HTTPException(status_code=403, detail="Commenting is disabled for this post")

    comment = CommentModel(author_id=current_user["user_id"], content=payload.content).dict()
    await posts_coll.update_one({"post_id": post_id}, {"$push": {"comments": comment}})
    return {"success": True, "message": "Comment added successfully", "data": comment}


@router.delete("/{post_id}/comments/{comment_id}")
async def delete_comment(post_id: str, comment_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    post = await _get_post(post_id)
    comment = next((c for c in post.get("comments") or [] if c.get("comment_id") == comment_id), None)
    if comment is None:
        raise HTTPException(status_code=404, detail="Comment not found")

    user_id = current_user["user_id"]
    if comment.get("author_id") != user_id and post.get("author_id") != user_id:
        raise HTTPException(status_code=403, detail="You can only delete your own comments or comments on your posts")

    await posts_coll.update_one({"post_id": post_id}, {"$pull": {"comments": {"comment_id": comment_id}}})
    return {"success": True, "message": "Comment deleted successfully"}


@router.post("/{post_id}/share")
async def share_post(post_id: str, payload: SharePayload, current_user: Dict[str, Any] = Depends(get_current_user)):
    post = await _get_post(post_id)
    user_id = current_user["user_id"]
    if any(s.get("user_id") == user_id for s in post.get("shares") or []):
        raise HTTPException(status_code=400, detail="You have already shared this post")

    share = ShareModel(user_id=user_id, share_comment=payload.share_comment).dict()
    await posts_coll.update_one({"post_id": post_id}, {"$push": {"shares": share}})
    return {"success": True, "message": "Post shared successfully", "share_count": len(post.get("shares") or []) + 1}


@router.put("/{post_id}")
async def update_post(post_id: str, payload: PostUpdatePayload, current_user: Dict[str, Any] = Depends(get_current_user)):
    post = await _get_post(post_id)
    if post.get("author_id") != current_user["user_id"]:
        raise HTTPException(status_code=403, detail="You can only edit your own posts")

    now = datetime.utcnow()
    updates = payload.dict(exclude_unset=True)
    updates.update({"is_edited": True, "edited_at": now, "updated_at": now})
    await posts_coll.update_one({"post_id": post_id}, {"$set": updates})
    return {"success": True, "message": "Post updated successfully", "data": post_view({**post, **updates}, current_user["user_id"])}


@router.delete("/{post_id}")
async def delete_post(post_id: str, current_user: Dict[str, Any] = Depends(get_current_user)):
    post = await _get_post(post_id)
    if post.get("author_id") != current_user["user_id"]:
        raise HTTPException(status_code=403, detail="You can only delete your own posts")

    await posts_coll.delete_one({"post_id": post_id})
    logger.info(f"Post {post_id} deleted by {current_user['user_id']}")
    return {"success": True, "message": "Post deleted successfully"}
