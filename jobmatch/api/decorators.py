# jobmatch/api/decorators.py
from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import jsonify

from jobmatch import logs
from jobmatch.utils.errors import InsufficientDataError, RegistryError, UserInputError


def handle_service_errors(func: Callable[..., Any]):
    """
    Decorator: convert service exceptions into JSON error responses.

    Contract (FROZEN):
    - UserInputError       → 400 (bad id, unknown model type / version / algorithm)
    - InsufficientDataError → 422
    - RegistryError        → 503
    - anything else propagates to Flask (500)
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except UserInputError as e:
            return jsonify({"error": str(e)}), 400
        except InsufficientDataError as e:
            return jsonify({
                "error": str(e),
                "available": e.available,
                "required": e.required,
            }), 422
        except RegistryError as e:
            logs.error(f"[API] registry unavailable: {e}")
            return jsonify({"error": "model registry unavailable", "detail": str(e)}), 503

    return wrapper
