"""
The core of the client: the resources, their pagination & batching, the logging.

Everything here is built on top of the cogs, and knows about Attio's resources.
"""
