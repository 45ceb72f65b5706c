from typing import Any, Dict

from socialhub.exceptions import NotFoundError, ValidationError
from socialhub.models.reaction import REACTION_EMOJIS
from socialhub.repositories.activity_repository import CommentRepository, FollowRepository, PostRepository
from socialhub.repositories.reaction_repository import ReactionRepository
from socialhub.services.notification_service import NotificationService


class ActivityService:
    """User actions on posts and profiles that notify someone else."""

    def __init__(
        self,
        post_repo: PostRepository,
        reaction_repo: ReactionRepository,
        comment_repo: CommentRepository,
        follow_repo: FollowRepository,
        notifications: NotificationService,
    ) -> None:
        self._posts = post_repo
        self._reactions = reaction_repo
        self._comments = comment_repo
        self._follows = follow_repo
        self._notifications = notifications

    async def react(self, post_id: str, user_id: str, kind: str) -> Dict[str, Any]:
        if kind not in REACTION_EMOJIS:
            raise ValidationError("Invalid reaction type")
        post = await self._get_post(post_id)
        await self._reactions.set_reaction(post["_id"], user_id, kind)
        await self._notifications.create(
            recipient_id=post["author_id"],
            sender_id=user_id,
            kind="reaction",
            text=f"reacted {REACTION_EMOJIS[kind]} to your post",
            related_post_id=post["_id"],
        )
        return await self._reactions.summarize(post["_id"])

    async def toggle_like(self, post_id: str, user_id: str) -> Dict[str, Any]:
        post = await self._get_post(post_id)
        current = await self._reactions.get_reaction(post["_id"], user_id)
        if current == "like":
            await self._reactions.remove_reaction(post["_id"], user_id)
        else:
            await self._reactions.set_reaction(post["_id"], user_id, "like")
        return await self._reactions.summarize(post["_id"])

    async def reaction_summary(self, post_id: str) -> Dict[str, Any]:
        post = await self._get_post(post_id)
        return await self._reactions.summarize(post["_id"])

    async def comment(self, post_id: str, user_id: str, content: str) -> Dict[str, Any]:
        if not content or not content.strip():
            raise ValidationError("Comment content is required")
        post = await self._get_post(post_id)
        comment = await self._comments.create(post["_id"], user_id, content.strip())
        await self._notifications.create(
            recipient_id=post["author_id"],
            sender_id=user_id,
            kind="comment",
            text="commented on your post",
            related_post_id=post["_id"],
            related_comment_id=comment["_id"],
        )
        return comment

    async def share(self, post_id: str, user_id: str) -> None:
        post = await self._get_post(post_id)
        await self._posts.add_share(post["_id"], user_id)
        await self._notifications.create(
            recipient_id=post["author_id"],
            sender_id=user_id,
            kind="share",
            text="shared your post",
            related_post_id=post["_id"],
        )

    async def follow(self, follower_id: str, followee_id: str) -> bool:
        if follower_id == followee_id:
            raise ValidationError("Cannot follow yourself")
        created = await self._follows.follow(follower_id, followee_id)
        if created:
            await self._notifications.create(
                recipient_id=followee_id,
                sender_id=follower_id,
                kind="follow",
                text="started following you",
            )
        return created

    async def unfollow(self, follower_id: str, followee_id: str) -> bool:
        return await self._follows.unfollow(follower_id, followee_id)

    async def _get_post(self, post_id: str) -> Dict[str, Any]:
        post = await self._posts.get_by_id(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post
