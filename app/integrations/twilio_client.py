from __future__ import annotations

import logging

import httpx

from app.utils.phone import mask_phone, to_e164_india

logger = logging.getLogger(__name__)

TWILIO_API = "https://api.twilio.com/2010-04-01/Accounts/{sid}"


class CallGatewayError(Exception):
    pass


class _TwilioClient:
    def __init__(self, account_sid: str, auth_token: str, from_number: str, timeout: float = 10.0):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def _post(self, resource: str, form: dict) -> dict:
        url = f"{TWILIO_API.format(sid=self.account_sid)}/{resource}.json"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(url, data=form, auth=(self.account_sid, self.auth_token))
        resp.raise_for_status()
        return resp.json()


class TwilioCallGateway(_TwilioClient):
    """Places the verification call; Twilio then drives our TwiML webhooks."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str,
                 webhook_base_url: str, ring_timeout: int = 30, timeout: float = 10.0):
        super().__init__(account_sid, auth_token, from_number, timeout)
        self.webhook_base_url = webhook_base_url.rstrip("/")
        self.ring_timeout = ring_timeout

    async def call(self, phone: str, complaint_id: str) -> str:
        if not self.configured:
            raise CallGatewayError("Twilio credentials not configured")
        to = to_e164_india(phone)
        form = {
            "To": to,
            "From": self.from_number,
            "Url": f"{self.webhook_base_url}/complaints/verify-call/{complaint_id}",
            "Method": "POST",
            "StatusCallback": f"{self.webhook_base_url}/complaints/call-status/{complaint_id}",
            "StatusCallbackMethod": "POST",
            "Timeout": str(self.ring_timeout),
            "MachineDetection": "Enable",
        }
        try:
            body = await self._post("Calls", form)
        except httpx.HTTPError as exc:
            raise CallGatewayError(f"call to {mask_phone(to)} failed: {exc}") from exc
        logger.info("Verification call placed to %s (sid=%s)", mask_phone(to), body.get("sid"))
        return body["sid"]


class TwilioSmsSender(_TwilioClient):
    def __init__(self, account_sid: str, auth_token: str, from_number: str,
                 production: bool = False, timeout: float = 10.0):
        super().__init__(account_sid, auth_token, from_number, timeout)
        self.production = production

    async def send(self, to: str, content: str) -> bool:
        if not self.production:
            logger.info("SMS (dev, not sent) to %s: %s", mask_phone(to), content)
            return True
        if not self.configured:
            logger.warning("SMS skipped, Twilio credentials not configured")
            return False
        try:
            body = await self._post("Messages", {"From": self.from_number, "To": to_e164_india(to), "Body": content})
        except httpx.HTTPError as exc:
            logger.warning("SMS to %s failed: %s", mask_phone(to), exc)
            return False
        logger.info("SMS sent to %s (sid=%s)", mask_phone(to), body.get("sid"))
        return True
