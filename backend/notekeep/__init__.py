# notekeep/__init__.py
"""Notekeep: personal notes backend with token auth and owner-scoped attachments."""
