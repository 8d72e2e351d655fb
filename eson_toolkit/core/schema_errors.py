from __future__ import annotations

"""Helpers for the error objects produced by a JSON schema validator.

Errors are dictionaries of the form ``{"dataPath", "message", "keyword"?,
"params"?, "schema"?}`` where ``dataPath`` is a JSON Pointer. Validation
itself is not done here.
"""

import json
from typing import Any, Dict, List, Sequence, Union

__all__ = ["MAX_ERRORS", "enrich_schema_error", "limit_errors"]

# maximum number of errors listed below the editor
MAX_ERRORS = 30

_MAX_ENUM_VALUES = 5


def enrich_schema_error(error: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of *error* with a more readable message.

    >>> enrich_schema_error({"keyword": "additionalProperties", "message": "",
    ...                      "params": {"additionalProperty": "foo"}})["message"]
    'should NOT have additional property: foo'
    """
    enriched = dict(error)
    keyword = error.get("keyword")

    if keyword == "enum" and isinstance(error.get("schema"), list):
        values = [json.dumps(value) for value in error["schema"]]
        if len(values) > _MAX_ENUM_VALUES:
            hidden = len(values) - _MAX_ENUM_VALUES
            values = values[:_MAX_ENUM_VALUES] + [f"({hidden} more...)"]
        enriched["message"] = "should be equal to one of: " + ", ".join(values)

    elif keyword == "additionalProperties":
        params = error.get("params") or {}
        enriched["message"] = (
            "should NOT have additional property: " + str(params.get("additionalProperty", ""))
        )

    return enriched


def limit_errors(errors: Sequence[Dict[str, Any]],
                 max_errors: int = MAX_ERRORS) -> List[Union[Dict[str, Any], str]]:
    """Keep the first *max_errors* errors and append a ``(n more errors...)`` note."""
    if len(errors) <= max_errors:
        return list(errors)
    hidden = len(errors) - max_errors
    return list(errors[:max_errors]) + [f"({hidden} more errors...)"]
