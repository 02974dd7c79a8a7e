"""
Kits for the applications: optional utilities around the client.

They are not used by the client itself, and the client works without them.
"""
