"""
Shutterfeed Backend — Middleware Package
=========================================

Request path (outermost first):
    Rate Limit → Request ID → Access Log → GZip → CORS → route

    - Rate limiting rejects abusive clients before any other work
    - The request id is set before the access log line is written, so both
      the log line and any error body carry the same id
"""
