"""Request body parsing shared by routes that accept free-form JSON objects."""

from typing import Any

from fastapi import Request

from opsdesk.platform.errors import ValidationError


async def read_json_object(request: Request) -> dict[str, Any]:
    """
    Parse the request body as a JSON object.

    Runs on the event loop so the route handlers that use it can stay
    synchronous and execute in the threadpool.

    Raises:
        ValidationError: body is not valid JSON or not an object (400)
    """
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    return body
