"""
Idea Box
Blueprint registry.
"""

from flask import request


def json_body() -> dict:
    """Request JSON object, or {} for an empty/non-object body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
