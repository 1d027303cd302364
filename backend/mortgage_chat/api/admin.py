"""
Admin console endpoints: user list, per-user transcripts, CSV export.
"""

from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from mortgage_chat.api.deps import Services, get_services, require_admin
from mortgage_chat.models import Transcript, UserSummary

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/users", response_model=List[UserSummary])
async def list_users(services: Services = Depends(get_services)):
    return await services.registry.list_users()


@router.get("/users.csv")
async def export_users(services: Services = Depends(get_services)):
    csv_text = await services.registry.export_csv()
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="users.csv"'},
    )


@router.get("/users/{user_id}/transcript", response_model=Transcript)
async def get_transcript(user_id: str, services: Services = Depends(get_services)):
    return await services.registry.get_transcript(user_id)
