"""
Utility functions for the application.
"""
from typing import Any, Dict


def format_response(data: Any) -> Dict[str, Any]:
    """Wrap data in the API success envelope."""
    return {
        "success": True,
        "data": data
    }
