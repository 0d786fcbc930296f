# notekeep/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Startup tasks (upload directory)
- db: Database configuration and connection management
- result: Typed service results and error codes
- security: Password hashing and bearer token signing/verification
- storage: Local durable storage for attachment bytes
"""
