"""
Portcullis Backend - Security Package
======================================

Password hashing, bearer tokens, the auth guard and input sanitization.
"""
