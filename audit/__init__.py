"""
Audit app

Purpose: Keep a sanitized audit trail of every API request, persisted off the
request path, and alert developers about failures that need attention.
Also reports daily generation usage from that trail.
"""
