"""Comments and replies on forum posts.

Note: Routers are not exported here to avoid circular imports.
Import directly from rizhilu.comments.router when needed.
"""
