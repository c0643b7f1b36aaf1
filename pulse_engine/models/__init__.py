from pulse_engine.models.commands import (
    SignalCreate,
    SignalUpdate,
    TicketCreate,
    TicketUpdate,
    command_fields,
)

__all__ = ["SignalCreate", "SignalUpdate", "TicketCreate", "TicketUpdate", "command_fields"]
