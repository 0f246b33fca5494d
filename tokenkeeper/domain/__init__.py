"""Pure domain pieces: token status, token numbering, timestamps, errors.

Nothing here touches FastAPI or the filesystem, so the services and the smoke
runner can share it.
"""
__all__ = ["errors", "status", "tokens"]
