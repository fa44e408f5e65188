from enum import Enum

class OrderStatus(Enum):
    NEW = "new"
    FINISHED = "finished"
    CANCELED = "canceled"

class WatchState(Enum):
    IDLE = "idle"
    CREATING = "creating"
    AWAITING_SETTLEMENT = "awaiting_settlement"
    RECONCILING = "reconciling"
