"""
The HTTP client of Attio's API: the sessions, the requests, the errors.

Nothing here knows about the specific resources: it only sends
the already resolved paths with the already shaped payloads,
and returns the parsed responses (or raises the API errors).
"""
