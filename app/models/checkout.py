from pydantic import BaseModel
from typing import Optional


# field names follow the storefront's JSON body
class CheckoutRequest(BaseModel):
    priceId: Optional[str] = None
    planId: Optional[str] = None
    purchaseType: Optional[str] = None
    couponCode: Optional[str] = None
