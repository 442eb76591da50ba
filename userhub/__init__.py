"""
UserHub

In-memory user management REST API and its Python client.
"""

__version__ = "1.0.0"
