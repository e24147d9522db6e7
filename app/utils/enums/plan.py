from enum import Enum

class PlanType(str, Enum):
    NEW_ACCOUNT = "new_account"
    RECHARGE = "recharge"
