"""
FAQ endpoints. Reads are public, writes need the admin token.
"""

from typing import List

from fastapi import APIRouter, Depends

from mortgage_chat.api.deps import Services, get_services, require_admin
from mortgage_chat.models import FAQCreateRequest, FAQEntry, FAQUpdateRequest

router = APIRouter(prefix="/api/faqs", tags=["faqs"])


@router.get("", response_model=List[FAQEntry])
async def list_faqs(services: Services = Depends(get_services)):
    return await services.faqs.list()


@router.post("", response_model=FAQEntry, dependencies=[Depends(require_admin)])
async def create_faq(req: FAQCreateRequest, services: Services = Depends(get_services)):
    return await services.faqs.create(req.question, req.answer)


@router.put("/{faq_id}", response_model=FAQEntry, dependencies=[Depends(require_admin)])
async def update_faq(faq_id: str, req: FAQUpdateRequest, services: Services = Depends(get_services)):
    return await services.faqs.update(faq_id, question=req.question, answer=req.answer)


@router.delete("/{faq_id}", dependencies=[Depends(require_admin)])
async def delete_faq(faq_id: str, services: Services = Depends(get_services)):
    await services.faqs.delete(faq_id)
    return {"success": True}
