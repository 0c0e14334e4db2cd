"""
BingoBook Backend — Request Payload Parsing
=============================================

What:  Turns a request body into one of the request schemas, whether the
       client posted JSON or an HTML form.
How:   `payload_of(Model)` builds a dependency that reads the body by
       Content-Type, validates it with Pydantic and raises the app's
       ValidationError (400) on failure.

Accepted bodies:
    application/json                   {"entryId": 1, "timesheetRow": 0}
    application/x-www-form-urlencoded  entryId=1&timesheetRow=0
    multipart/form-data                text fields only; files are ignored

The parsed entry id (if any) is stored on request.state.entry_id for the
access log.
"""

from typing import Any, Awaitable, Callable, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bingobook.exceptions import ValidationError

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(model: Type[ModelT], values: Any) -> ModelT:
    try:
        return model.model_validate(values)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Request payload is missing fields or has the wrong types",
            context={
                "errors": [
                    {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
            },
        )


async def read_payload(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    if not await request.body():
        return {}
    try:
        return await request.json()
    except ValueError:
        raise ValidationError(message="Request body is neither JSON nor form data")


def payload_of(model: Type[ModelT]) -> Callable[[Request], Awaitable[ModelT]]:
    """Dependency factory: `body: Model = Depends(payload_of(Model))`."""

    async def parse(request: Request) -> ModelT:
        parsed = validate_payload(model, await read_payload(request))
        entry_id = getattr(parsed, "entry_id", None)
        if entry_id is None:
            entry_id = getattr(parsed, "id", None)
        if entry_id is not None:
            request.state.entry_id = entry_id
        return parsed

    return parse
