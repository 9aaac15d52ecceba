"""
Portcullis Backend - API Routes Package
=======================================

Route Inventory:
    - users.py:   GET    /users              (paginated list)
                  GET    /users/me           (bearer token required)
                  GET    /users/{id}         (optional bearer token)
                  POST   /users
                  PUT    /users/{id}
                  DELETE /users/{id}
    - auth.py:    GET    /auth/google        (302 to Google)
                  GET    /auth/google/callback
                  POST   /auth/login
    - health.py:  GET    /health
    - docs.py:    GET    /llms.txt           (/docs and /api-specs come from FastAPI)

Routes stay thin: extract input, call a service, wrap the result with
app.responses.ok(). Failures are raised, never returned.
"""
