"""
Settings of the client: how to connect, authenticate, and retry.
"""
