"""
Engines of the client: the cross-cutting machinery used by all resources.
"""
