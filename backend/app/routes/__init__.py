# Routes package init
"""
Shutterfeed Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:        POST /api/auth/register | login | logout
                      GET  /api/auth/profile
    - users.py:       GET  /api/users, /api/users/{id}
                      GET  /api/users/favorites
                      POST/DELETE /api/users/favorites/{photo_id}
                      PUT  /api/users/profile,  DELETE /api/users
    - photos.py:      GET/POST /api/photos, GET /api/photos/user/{user_id}
                      GET/DELETE /api/photos/{id}
                      POST /api/photos/{id}/tags, POST/DELETE /api/photos/{id}/like
    - comments.py:    GET/POST /api/comments/{photo_id}, DELETE /api/comments/{id}
    - activities.py:  GET  /api/activities, /api/activities/user/{user_id}
    - files.py:       GET  /api/files/{path}
    - health.py:      GET  /health

Routes stay thin: read the request, call one service, return its result.
Authorization and visibility decisions live in the services.
"""
