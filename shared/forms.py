from dataclasses import dataclass
from typing import Union

from fastapi import Request
from starlette.datastructures import UploadFile

from .errors import MalformedSubmission


@dataclass
class Attachment:
    data: bytes
    filename: str


async def read_form(request: Request) -> list[tuple[str, Union[str, Attachment]]]:
    """
    Read a multipart/urlencoded body into (name, value) pairs, files buffered in memory.
    Empty file inputs (no filename, no bytes) are dropped.
    """
    try:
        form = await request.form()
    except Exception as e:
        raise MalformedSubmission("Could not decode form body") from e

    items: list[tuple[str, Union[str, Attachment]]] = []
    try:
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                data = await value.read()
                if not value.filename and not data:
                    continue
                items.append((key, Attachment(data=data, filename=value.filename or "file")))
            else:
                items.append((key, value))
    finally:
        await form.close()
    return items
