from ticketing.models.ticket import TicketDefinition, TicketKind
from ticketing.models.override import DateOverride
from ticketing.models.discount import DiscountRule
from ticketing.models.replenishment import GenerationState

__all__ = ["TicketDefinition", "TicketKind", "DateOverride", "DiscountRule", "GenerationState"]
