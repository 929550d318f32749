"""JSON responses for FastAPI handlers.

```python
from helpers.json_response import respond_with_error, respond_with_json

@app.get("/items/{item_id}")
def read_item(item_id: int) -> Response:
    item = store.get(item_id)
    if item is None:
        return respond_with_error(404, "item not found")
    return respond_with_json(200, item)
```
"""

import json
from typing import Any

from fastapi import Response
from pydantic import BaseModel

from foundation.http import JSON_CONTENT_TYPE


def respond_with_json(code: int, payload: Any) -> Response:
    """Build a response with status ``code`` and ``payload`` encoded as JSON.

    Pydantic models are serialized with ``model_dump_json``; anything else
    goes through ``json.dumps``.

    Raises:
        TypeError: If ``payload`` is not JSON serializable.
    """
    if isinstance(payload, BaseModel):
        content = payload.model_dump_json()
    else:
        content = json.dumps(payload)
    return Response(content=content, status_code=code, media_type=JSON_CONTENT_TYPE)


def respond_with_error(code: int, message: str) -> Response:
    """Build a ``{"error": message}`` JSON response."""
    return respond_with_json(code, {"error": message})
