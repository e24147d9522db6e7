from enum import Enum

class RechargeStatus(str, Enum):
    PENDING_LINK = "pending_link"
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELED = "canceled"
