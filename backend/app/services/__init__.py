# Services package init
"""
Shutterfeed Backend — Services Layer
=====================================

Business rules live here; routes only translate HTTP to service calls.

Service Inventory:
    - visibility:       can_view() / visible_to(), the photo visibility rule
    - mention_service:  @username parsing and mention resolution
    - comment_service:  comment creation/deletion pipeline
    - activity_service: activity log writes and the feed
    - photo_service:    upload, feed, likes, tags, deletion
    - user_service:     accounts, profiles, favorites, account deletion
    - auth_service:     bcrypt passwords, signed bearer tokens
    - file_service:     image validation, storage, serving
    - presenters:       eager-load options + ORM → response builders

Services never commit. They flush into the request's transaction and
get_db_session commits once the route returns.
"""
