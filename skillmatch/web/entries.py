"""Experience, education and skill routes."""

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from skillmatch.errors import ValidationFailed
from skillmatch.services.entries import EntriesService

from .dependencies import get_entries_service, require_user_id

router = APIRouter(prefix="/api/users")


def _listing(items) -> dict:
    return {"success": True, "count": len(items), "data": [item.to_dict() for item in items]}


def _created(item) -> JSONResponse:
    return JSONResponse({"success": True, "data": item.to_dict()}, status_code=201)


@router.get("/experiences")
def get_experiences(user_id: int = Depends(require_user_id), service: EntriesService = Depends(get_entries_service)):
    return _listing(service.list_experiences(user_id))


@router.post("/experiences")
def add_experience(
    data: dict = Body(...),
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    return _created(service.add_experience(user_id, data))


@router.put("/experiences/{experience_id}")
def update_experience(
    experience_id: int,
    data: dict = Body(...),
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    return {"success": True, "data": service.update_experience(user_id, experience_id, data).to_dict()}


@router.delete("/experiences/{experience_id}")
def delete_experience(
    experience_id: int,
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    service.delete_experience(user_id, experience_id)
    return {"success": True, "data": {}}


@router.get("/educations")
def get_educations(user_id: int = Depends(require_user_id), service: EntriesService = Depends(get_entries_service)):
    return _listing(service.list_educations(user_id))


@router.post("/educations")
def add_education(
    data: dict = Body(...),
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    return _created(service.add_education(user_id, data))


@router.put("/educations/{education_id}")
def update_education(
    education_id: int,
    data: dict = Body(...),
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    return {"success": True, "data": service.update_education(user_id, education_id, data).to_dict()}


@router.delete("/educations/{education_id}")
def delete_education(
    education_id: int,
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    service.delete_education(user_id, education_id)
    return {"success": True, "data": {}}


@router.get("/skills")
def get_skills(user_id: int = Depends(require_user_id), service: EntriesService = Depends(get_entries_service)):
    return _listing(service.list_skills(user_id))


@router.post("/skills")
def add_skill(
    data: dict = Body(...),
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    try:
        skill_id = int(data.get("skillId"))
    except (TypeError, ValueError) as e:
        raise ValidationFailed.for_field("skillId", "Skill ID is required") from e
    return _created(service.add_skill(user_id, skill_id, data.get("proficiencyLevel")))


@router.delete("/skills/{skill_id}")
def remove_skill(
    skill_id: int,
    user_id: int = Depends(require_user_id),
    service: EntriesService = Depends(get_entries_service),
):
    service.remove_skill(user_id, skill_id)
    return {"success": True, "data": {}}
