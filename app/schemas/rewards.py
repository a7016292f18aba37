from typing import Optional

from app.schemas.user import CamelModel


class RedeemRequest(CamelModel):
    delivery_address: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None
    send_email: bool = False
