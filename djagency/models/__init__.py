from djagency.models.profile import Profile, ProfileRole
from djagency.models.producer import Producer
from djagency.models.event import Event
from djagency.models.event_dj import EventDJ
from djagency.models.contract import Contract, ContractTemplate
from djagency.models.payment import (
    Payment,
    PaymentReceipt,
    PaymentStatus,
    PendingPayment,
    PAYMENT_STATUS_ALIASES,
    PAYMENT_STATUS_TRANSITIONS,
)
from djagency.models.media_file import MediaFile, MediaCategory
from djagency.models.dj_producer_relation import DJProducerRelation

__all__ = [
    # People
    "Profile",
    "ProfileRole",
    "Producer",
    # Bookings
    "Event",
    "EventDJ",
    "DJProducerRelation",
    # Contracts
    "Contract",
    "ContractTemplate",
    # Payments
    "Payment",
    "PaymentReceipt",
    "PaymentStatus",
    "PendingPayment",
    "PAYMENT_STATUS_ALIASES",
    "PAYMENT_STATUS_TRANSITIONS",
    # Media
    "MediaFile",
    "MediaCategory",
]
