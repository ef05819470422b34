"""
Generation app

Purpose: Call upstream text-generation providers with credential rotation,
retry/backoff and failure classification, then recover JSON from the replies.
Serves the extension's keywords, cover letter, experience and chat endpoints.
"""
