from enum import Enum


class StoreNotification(Enum):
    ORDER_CONFIRMED = "ORDER_CONFIRMED"
    IN_PRODUCTION = "IN_PRODUCTION"
    SHIPPED = "SHIPPED"
