"""
BingoBook Backend — Entry Route Handlers
==========================================

What:  POST /submit-data, GET /get-data, POST /update-data, POST /delete-data,
       POST /add-image, POST /delete-image.
How:   Parse the form/JSON payload, delegate to EntryService, wrap the result
       in a response model. Errors are formatted by the global handlers.

Request formats:
    multipart/form-data   submit-data, add-image (text fields + "images" files)
    JSON or form-encoded  update-data, delete-data, delete-image
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from bingobook.database import get_db_session
from bingobook.exceptions import ValidationError
from bingobook.schemas.common import ErrorResponse
from bingobook.schemas.entry import (
    EntryDeleteRequest,
    EntryFields,
    EntryMutationResponse,
    EntryResponse,
    EntryUpdateRequest,
    ImageDeleteRequest,
    ImageListResponse,
    SubmitResponse,
)
from bingobook.routes.payload import payload_of, validate_payload
from bingobook.services.entry_service import UploadedImage, entry_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Entries"])


async def read_uploads(files: Optional[List[UploadFile]]) -> List[UploadedImage]:
    """
    Read multipart files into (filename, bytes) pairs and close them.

    Empty file inputs (no filename, no content) are dropped.
    """
    uploads: List[UploadedImage] = []
    for upload in files or []:
        try:
            content = await upload.read()
        finally:
            await upload.close()
        if not upload.filename and not content:
            continue
        uploads.append((upload.filename or "upload", content))
    return uploads


def parse_form_id(value: Optional[str], field: str) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(message=f"Invalid {field} provided", field=field)


@router.post(
    "/submit-data",
    response_model=SubmitResponse,
    responses={
        400: {"description": "Too many or invalid images", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Create an entry with up to 10 images",
)
async def submit_data(
    request: Request,
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    room_number: Optional[str] = Form(None, alias="roomNumber"),
    additional_text: Optional[str] = Form(None, alias="additionalText"),
    images: Optional[List[UploadFile]] = File(None, description="Image files (max 10)"),
    db: AsyncSession = Depends(get_db_session),
) -> SubmitResponse:
    fields = validate_payload(
        EntryFields,
        {
            "first_name": first_name,
            "last_name": last_name,
            "room_number": room_number,
            "additional_text": additional_text,
        },
    )
    uploads = await read_uploads(images)
    logger.info("Submit request with %d image(s)", len(uploads))

    entry_id = await entry_service.submit(db=db, fields=fields, images=uploads)
    request.state.entry_id = entry_id
    return SubmitResponse(message=f"Entry added with ID: {entry_id}", id=entry_id)


@router.get(
    "/get-data",
    response_model=List[EntryResponse],
    summary="List entries, optionally filtered by a search string",
)
async def get_data(
    q: Optional[str] = Query(
        default=None,
        description="Case-insensitive substring matched against names, room number and text",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> List[EntryResponse]:
    return await entry_service.search(db=db, query=q)


@router.post(
    "/update-data",
    response_model=EntryMutationResponse,
    responses={
        400: {"description": "Missing id", "model": ErrorResponse},
        404: {"description": "Entry not found", "model": ErrorResponse},
    },
    summary="Update an entry's text fields",
)
async def update_data(
    body: EntryUpdateRequest = Depends(payload_of(EntryUpdateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> EntryMutationResponse:
    await entry_service.update(db=db, entry_id=body.id, fields=body)
    return EntryMutationResponse(message="Entry updated", id=body.id)


@router.post(
    "/delete-data",
    response_model=EntryMutationResponse,
    responses={
        400: {"description": "Missing or invalid id", "model": ErrorResponse},
        404: {"description": "Entry not found", "model": ErrorResponse},
    },
    summary="Delete an entry and its timesheet rows",
)
async def delete_data(
    body: EntryDeleteRequest = Depends(payload_of(EntryDeleteRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> EntryMutationResponse:
    await entry_service.delete(db=db, entry_id=body.id)
    return EntryMutationResponse(message="Entry deleted", id=body.id)


@router.post(
    "/add-image",
    response_model=ImageListResponse,
    responses={
        400: {"description": "No images, too many images, or invalid file", "model": ErrorResponse},
        404: {"description": "Entry not found", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Append 1-10 images to an entry",
)
async def add_image(
    request: Request,
    entry_id: Optional[str] = Form(None, alias="entryId"),
    images: Optional[List[UploadFile]] = File(None, description="Image files (1-10)"),
    db: AsyncSession = Depends(get_db_session),
) -> ImageListResponse:
    parsed_id = parse_form_id(entry_id, "entryId")
    request.state.entry_id = parsed_id
    uploads = await read_uploads(images)
    logger.info("Add-image request for entry %s with %d image(s)", parsed_id, len(uploads))

    updated = await entry_service.add_images(db=db, entry_id=parsed_id, images=uploads)
    return ImageListResponse(message="New images added to entry", images=updated)


@router.post(
    "/delete-image",
    response_model=ImageListResponse,
    responses={
        404: {"description": "Image file or entry not found", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Delete one image file and remove it from the entry",
)
async def delete_image(
    body: ImageDeleteRequest = Depends(payload_of(ImageDeleteRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> ImageListResponse:
    remaining = await entry_service.delete_image(
        db=db,
        entry_id=body.entry_id,
        image_name=body.image_name,
    )
    return ImageListResponse(message="Image deleted", images=remaining)
