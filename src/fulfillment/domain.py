"""Fulfillment bounded context — Store Order Fulfillment.

Turns completed store checkouts into print-on-demand jobs and digital
license deliveries, then follows the print provider's status callbacks until
the books ship. One Order per checkout session; the Order is the durable
record of every external side effect and every customer notification.
"""

from protean.domain import Domain

from fulfillment.utils.logging import configure_logging

# Level, renderer and file handlers follow LOG_LEVEL, PROTEAN_ENV and LOG_DIR
configure_logging()

fulfillment = Domain(name="fulfillment")
