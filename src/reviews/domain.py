"""Reviews bounded context — mutual (double-blind) reviews between hikers and guides.

After a tour completes, the hiker and the guide are each invited to review the
other. Neither review becomes visible until both have been submitted for the
booking, at which point the pair is published together. The reviewed party
may then attach a single response.

Bookings, identity and notification delivery are owned by other contexts and
reached through the ports in ``reviews.gateway``.
"""

from protean.domain import Domain

from reviews.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

reviews = Domain(name="reviews")
