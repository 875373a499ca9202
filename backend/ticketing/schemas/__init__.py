from ticketing.schemas.ticket import (
    TicketCreate, TicketUpdate, TicketResponse,
    DiscountRuleCreate, DiscountRuleUpdate, OverrideUpdate,
)
from ticketing.schemas.offer import (
    PurchaseOutcome, DiscountInfo, Offer, DateAvailability, DateTicketView,
    ReservationResult, PriceQuote,
)
from ticketing.schemas.replenishment import (
    TicketTemplateResponse, DateGenerationDetail, GenerationResult, GenerationStatus,
)

__all__ = [
    "TicketCreate", "TicketUpdate", "TicketResponse",
    "DiscountRuleCreate", "DiscountRuleUpdate", "OverrideUpdate",
    "PurchaseOutcome", "DiscountInfo", "Offer", "DateAvailability", "DateTicketView",
    "ReservationResult", "PriceQuote",
    "TicketTemplateResponse", "DateGenerationDetail", "GenerationResult", "GenerationStatus",
]
