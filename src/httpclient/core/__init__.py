"""
Collaborator interfaces at the edge of the client.
"""

from .transport import Transport

__all__ = ["Transport"]
