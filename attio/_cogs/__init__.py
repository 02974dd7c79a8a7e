"""
Low-level building blocks of the client: helpers, settings, wire structures,
and the HTTP client itself.

Nothing here knows about the specific resources of Attio's API.
The resources are assembled from these blocks in :mod:`attio._core`.
"""
