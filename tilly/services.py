"""The collaborators a handler may call, bundled for injection.

Every collaborator method is a coroutine. The optional integrations
(hardware, exporter, system) are None when the runtime has no bridge for
them; handlers report that as "unavailable" rather than failing.

    catalog    list_all(), find(name_or_code), low_stock(),
               update_price(id, price), update_stock(id, qty)
    cart       add(product, qty), remove(product_id), update_quantity(product_id, qty),
               clear(), items()
    billing    get_bill(number_or_id)
    customers  search(name_or_phone)
    reports    query(metric, start, end, limit=None)
    cash       current_session(), add_transaction(session_id, kind, amount, reason)
    hardware   open_drawer(), print_test(), read_scale()
    exporter   export(filename, title, rows, fmt)
    system     check_health(), self_heal()
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from tilly.events import EventChannel


@dataclass
class Services:
    catalog: Any
    cart: Any
    billing: Any
    customers: Any
    reports: Any
    cash: Any
    hardware: Optional[Any] = None
    exporter: Optional[Any] = None
    system: Optional[Any] = None
    events: EventChannel = field(default_factory=EventChannel)
