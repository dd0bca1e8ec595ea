from splitbook.handlers.basic import basic_router, on_ledger_error
from splitbook.handlers.expenses import expenses_router
from splitbook.handlers.participants import participants_router

__all__ = ["basic_router", "expenses_router", "participants_router", "on_ledger_error"]
