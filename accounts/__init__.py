"""
Accounts app

Purpose: Users of the browser extension and the API keys they authenticate
with. Provides the X-API-Key authentication used across the API.
"""
