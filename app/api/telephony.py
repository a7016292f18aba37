"""Voice webhooks called by the telephony provider; always answer 200 with TwiML."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import Response

from app.api.deps import get_services
from app.core.config import get_settings
from app.services import twiml
from app.services.registry import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/complaints", tags=["Telephony"])

SORRY = "Sorry, we could not process your request. Goodbye."


def _xml(body: str) -> Response:
    return Response(content=body, media_type="text/xml")


def _base_url() -> str:
    return get_settings().webhook_base_url


@router.post("/verify-call/{complaint_id}")
async def verify_call(complaint_id: str, services: Services = Depends(get_services)):
    try:
        complaint = await services.complaint_repo.get(complaint_id)
    except Exception:
        logger.exception("verify-call failed for %s", complaint_id)
        return _xml(twiml.hangup(SORRY))
    if not complaint:
        return _xml(twiml.hangup("Complaint not found. Goodbye."))
    return _xml(twiml.greeting(_base_url(), complaint_id))


@router.post("/language-selection/{complaint_id}")
async def language_selection(complaint_id: str, Digits: Optional[str] = Form(default=None)):
    lang = "hi" if (Digits or "").strip() == "2" else "en"
    return _xml(twiml.verification_prompt(_base_url(), complaint_id, lang))


@router.post("/verify-complaint/{complaint_id}")
async def verify_complaint(complaint_id: str, lang: str = Query(default="en")):
    return _xml(twiml.verification_prompt(_base_url(), complaint_id, lang))


@router.post("/process-verification/{complaint_id}")
async def process_verification(
    complaint_id: str,
    lang: str = Query(default="en"),
    Digits: Optional[str] = Form(default=None),
    CallSid: Optional[str] = Form(default=None),
    services: Services = Depends(get_services),
):
    try:
        result = await services.phone.handle_digit(complaint_id, Digits, CallSid)
    except Exception:
        logger.exception("Verification input for %s failed", complaint_id)
        return _xml(twiml.hangup(SORRY))
    if result == "processed":
        return _xml(twiml.hangup("This complaint has already been processed. Goodbye."))
    return _xml(twiml.outcome(result, lang))


@router.post("/call-status/{complaint_id}")
async def call_status(
    complaint_id: str,
    CallStatus: Optional[str] = Form(default=None),
    services: Services = Depends(get_services),
):
    try:
        result = await services.phone.handle_call_status(complaint_id, CallStatus)
        logger.info("Call status %s for complaint %s -> %s", CallStatus, complaint_id, result)
    except Exception:
        logger.exception("Call status for %s failed", complaint_id)
    return _xml(twiml.hangup())


@router.post("/verification-timeout/{complaint_id}")
async def verification_timeout(complaint_id: str, services: Services = Depends(get_services)):
    try:
        await services.phone.handle_missed(complaint_id)
    except Exception:
        logger.exception("Verification timeout for %s failed", complaint_id)
    return _xml(twiml.hangup())
