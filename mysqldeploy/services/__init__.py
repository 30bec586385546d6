"""
Services package for mysqldeploy.

This package contains business logic services including:
- Provisioning: configuration resolution, request composition and submission
"""

__all__ = []
