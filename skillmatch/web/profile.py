"""Profile and document routes - profile edits, image, resumes, documents."""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from skillmatch.errors import ValidationFailed
from skillmatch.profile.validation import UploadedFile
from skillmatch.services.profile_service import ProfileService

from .dependencies import get_profile_service, require_user_id

router = APIRouter(prefix="/api/users")


async def _materialize(upload: StarletteUploadFile) -> UploadedFile:
    content = await upload.read()
    return UploadedFile(content=content, filename=upload.filename or "", content_type=upload.content_type)


async def _read_form(request: Request, file_field: str) -> tuple[dict, UploadedFile | None]:
    """Split a multipart form into plain fields and the optional named file."""
    form = await request.form()
    fields = {}
    upload = None
    for key, value in form.multi_items():
        if isinstance(value, StarletteUploadFile):
            if key == file_field:
                upload = await _materialize(value)
        else:
            fields[key] = value
    return fields, upload


async def _read_json(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationFailed.for_field("body", "Invalid JSON") from e
    if not isinstance(body, dict):
        raise ValidationFailed.for_field("body", "Expected a JSON object")
    return body


@router.get("/profile")
def get_profile(
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    return {"success": True, "data": service.get_profile(user_id).to_dict()}


@router.put("/profile")
async def update_profile(
    request: Request,
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        fields, image = await _read_json(request), None
    else:
        fields, image = await _read_form(request, "profileImage")

    profile = service.update_profile(user_id, fields, image)
    return {"success": True, "data": profile.to_dict()}


@router.get("/resumes")
def get_resumes(
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    resumes = service.list_resumes(user_id)
    return {"success": True, "count": len(resumes), "data": [r.to_dict() for r in resumes]}


@router.post("/resumes")
async def upload_resume(
    request: Request,
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    _, upload = await _read_form(request, "resumeFile")
    if upload is None:
        raise ValidationFailed.for_field("resumeFile", "Please upload a file")

    document = service.upload_resume(user_id, upload.content, upload.filename, upload.content_type)
    return JSONResponse({"success": True, "data": document.to_dict()}, status_code=201)


@router.put("/resumes/{document_id}/default")
def select_default_resume(
    document_id: int,
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    return {"success": True, "data": service.set_default_resume(user_id, document_id).to_dict()}


@router.delete("/resumes/{document_id}")
@router.delete("/documents/{document_id}")
def delete_document(
    document_id: int,
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    service.delete_document(user_id, document_id)
    return {"success": True, "data": {}}


@router.get("/documents")
def get_documents(
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    documents = service.list_documents(user_id)
    return {"success": True, "count": len(documents), "data": [d.to_dict() for d in documents]}


@router.post("/documents")
async def upload_document(
    request: Request,
    user_id: int = Depends(require_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    fields, upload = await _read_form(request, "file")
    if upload is None:
        raise ValidationFailed.for_field("file", "Please upload a file")

    document = service.upload_document(
        user_id, fields.get("document_type", ""), upload.content, upload.filename, upload.content_type
    )
    return JSONResponse({"success": True, "data": document.to_dict()}, status_code=201)
