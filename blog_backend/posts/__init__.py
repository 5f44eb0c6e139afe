"""Blog posts: plain create/read/replace/update/delete over the ``posts`` table."""

from .crud import create_post, delete_post, get_post, list_posts, update_post

__all__ = ["create_post", "delete_post", "get_post", "list_posts", "update_post"]
