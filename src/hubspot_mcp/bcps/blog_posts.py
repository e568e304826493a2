from datetime import datetime

from hubspot_mcp.bcps.common import LIMIT_SCHEMA, paging_after, results_of
from hubspot_mcp.core.errors import BcpError, ErrorCode
from hubspot_mcp.core.service import DomainService, create_service
from hubspot_mcp.core.types import BCP, object_schema, tool

DOMAIN = "BlogPosts"

BLOG_POST_FIELDS = {
    "name": "name",
    "content_group_id": "contentGroupId",
    "slug": "slug",
    "blog_author_id": "blogAuthorId",
    "meta_description": "metaDescription",
    "post_body": "postBody",
    "featured_image": "featuredImage",
    "use_featured_image": "useFeaturedImage",
    "tag_ids": "tagIds",
}

FIELD_SCHEMAS = {
    "name": {"type": "string", "description": "Blog post title"},
    "content_group_id": {"type": "string", "description": "ID of the parent blog"},
    "slug": {"type": "string", "description": "URL slug"},
    "blog_author_id": {"type": "string", "description": "Blog author ID"},
    "meta_description": {"type": "string"},
    "post_body": {"type": "string", "description": "HTML content of the post"},
    "featured_image": {"type": "string", "description": "Featured image URL"},
    "use_featured_image": {"type": "boolean"},
    "tag_ids": {"type": "array", "items": {"type": "string"}},
}

POST_ID_SCHEMA = {"type": "string", "description": "HubSpot blog post ID"}


def _body(params):
    return {
        field: params[param]
        for param, field in BLOG_POST_FIELDS.items()
        if params.get(param) not in (None, "")
    }


def format_blog_post(post):
    return {
        "id": post.get("id"),
        "name": post.get("name"),
        "slug": post.get("slug"),
        "state": post.get("state"),
        "contentGroupId": post.get("contentGroupId"),
        "authorName": post.get("authorName"),
        "publishDate": post.get("publishDate"),
        "updated": post.get("updated") or post.get("updatedAt"),
        "url": f"https://app.hubspot.com/content/{post.get('contentGroupId')}/blog-posts/{post.get('id')}",
    }


class BlogPostsService(DomainService):
    base_path = "/cms/v3/blogs/posts"

    async def create(self, body):
        if not body.get("contentGroupId"):
            raise BcpError(
                "contentGroupId is required to create a blog post",
                ErrorCode.VALIDATION_ERROR,
                400,
            )
        return await self.hubspot.post(self.base_path, {**body, "state": "DRAFT"})

    async def get(self, post_id):
        return await self.hubspot.get(f"{self.base_path}/{post_id}")

    async def update(self, post_id, body):
        return await self.hubspot.patch(f"{self.base_path}/{post_id}", body)

    async def delete(self, post_id):
        await self.hubspot.delete(f"{self.base_path}/{post_id}")

    async def list(self, **params):
        return await self.hubspot.get(self.base_path, params=params)

    async def publish(self, post_id):
        await self.hubspot.post(f"{self.base_path}/{post_id}/draft/push-live")
        return await self.get(post_id)

    async def schedule(self, post_id, publish_date):
        await self.hubspot.post(
            f"{self.base_path}/schedule", {"id": post_id, "publishDate": publish_date}
        )
        return await self.get(post_id)


@tool(
    "create_blog_post",
    "Create a blog post draft",
    object_schema(FIELD_SCHEMAS, required=["name", "content_group_id"]),
    operation="create",
)
async def create_blog_post(params):
    async with create_service(BlogPostsService) as service:
        post = await service.create(_body(params))
    return {"message": "Blog post draft created successfully", "blogPost": format_blog_post(post)}


@tool(
    "get_blog_post",
    "Get a blog post by ID",
    object_schema({"post_id": POST_ID_SCHEMA}, required=["post_id"]),
    operation="get",
)
async def get_blog_post(params):
    async with create_service(BlogPostsService) as service:
        post = await service.get(params["post_id"])
    return {"blogPost": {**format_blog_post(post), "postBody": post.get("postBody")}}


@tool(
    "update_blog_post",
    "Update a blog post",
    object_schema({"post_id": POST_ID_SCHEMA, **FIELD_SCHEMAS}, required=["post_id"]),
    operation="update",
)
async def update_blog_post(params):
    body = _body(params)
    if not body:
        raise BcpError("No fields provided to update", ErrorCode.VALIDATION_ERROR, 400)
    async with create_service(BlogPostsService) as service:
        post = await service.update(params["post_id"], body)
    return {"message": "Blog post updated successfully", "blogPost": format_blog_post(post)}


@tool(
    "delete_blog_post",
    "Delete a blog post",
    object_schema({"post_id": POST_ID_SCHEMA}, required=["post_id"]),
    operation="delete",
)
async def delete_blog_post(params):
    async with create_service(BlogPostsService) as service:
        await service.delete(params["post_id"])
    return {"message": "Blog post deleted successfully", "id": params["post_id"]}


@tool(
    "list_blog_posts",
    "List blog posts, optionally filtered by name",
    object_schema(
        {
            "query": {"type": "string", "description": "Text contained in the post name"},
            "state": {"type": "string", "enum": ["DRAFT", "PUBLISHED", "SCHEDULED"]},
            "limit": LIMIT_SCHEMA,
            "after": {"type": "string", "description": "Pagination cursor"},
        }
    ),
    operation="list",
)
async def list_blog_posts(params):
    async with create_service(BlogPostsService) as service:
        response = await service.list(
            limit=params.get("limit", 10),
            after=params.get("after"),
            state=params.get("state"),
            name__icontains=params.get("query"),
        )
    posts = [format_blog_post(post) for post in results_of(response)]
    return {
        "blogPosts": posts,
        "count": len(posts),
        "total": response.get("total", len(posts)),
        "after": paging_after(response),
    }


@tool(
    "recent_blog_posts",
    "Get the most recently updated blog posts",
    object_schema({"limit": LIMIT_SCHEMA}),
    operation="recent",
)
async def recent_blog_posts(params):
    async with create_service(BlogPostsService) as service:
        response = await service.list(limit=params.get("limit", 10), sort="-updatedAt")
    posts = [format_blog_post(post) for post in results_of(response)]
    return {"blogPosts": posts, "count": len(posts)}


@tool(
    "publish_blog_post",
    "Publish a blog post draft",
    object_schema({"post_id": POST_ID_SCHEMA}, required=["post_id"]),
    operation="publish",
)
async def publish_blog_post(params):
    async with create_service(BlogPostsService) as service:
        post = await service.publish(params["post_id"])
    return {"message": "Blog post published successfully", "blogPost": format_blog_post(post)}


@tool(
    "schedule_blog_post",
    "Schedule a blog post for future publishing",
    object_schema(
        {
            "post_id": POST_ID_SCHEMA,
            "publish_date": {"type": "string", "description": "ISO 8601 publish time"},
        },
        required=["post_id", "publish_date"],
    ),
    operation="schedule",
)
async def schedule_blog_post(params):
    publish_date = params["publish_date"]
    try:
        datetime.fromisoformat(publish_date.replace("Z", "+00:00"))
    except ValueError:
        raise BcpError(
            f"Invalid publish date: {publish_date}", ErrorCode.VALIDATION_ERROR, 400
        )
    async with create_service(BlogPostsService) as service:
        post = await service.schedule(params["post_id"], publish_date)
    return {
        "message": f"Blog post scheduled for publishing on {publish_date}",
        "blogPost": format_blog_post(post),
    }


bcp = BCP(
    domain=DOMAIN,
    description="HubSpot CMS blog post tools",
    tools=(
        create_blog_post,
        get_blog_post,
        update_blog_post,
        delete_blog_post,
        list_blog_posts,
        recent_blog_posts,
        publish_blog_post,
        schedule_blog_post,
    ),
)
