# Services package init
"""
Portcullis Backend - Services Layer
===================================

What:  Business logic between the routes (HTTP) and the database.
How:   Services take an AsyncSession plus validated schemas, apply the
       account rules, and return ORM rows or auth results. They never build
       HTTP responses; routes turn their results into envelopes.

Service Inventory:
    - UserService: CRUD, pagination, Google linking, credential checks
    - GoogleOAuthService: consent URL, code exchange, userinfo fetch,
      login-or-register, password login; both sign-in paths end in
      issue_token()
"""
