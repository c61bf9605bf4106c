"""Faker-based payload generators for the store load test scenarios.

Payloads match the webhook shapes the service accepts and the Pydantic
request schemas of the storefront helper endpoints.
"""

import json
import random
import uuid

from faker import Faker

fake = Faker()

PRINT_STATUSES = ["CREATED", "UNPAID", "PRODUCTION_READY", "IN_PRODUCTION", "SHIPPED"]


def checkout_session_id() -> str:
    return f"cs_test_{uuid.uuid4().hex}"


def shipping_address() -> dict:
    return {
        "name": fake.name(),
        "street1": fake.street_address(),
        "city": fake.city(),
        "state_code": fake.state_abbr(),
        "postcode": fake.postcode(),
        "country_code": "US",
        "phone_number": fake.numerify("+1-###-###-####"),
    }


def page_count() -> int:
    return random.randint(24, 800)


def payment_event(session_id: str | None = None, event_type: str = "checkout.session.completed") -> str:
    """A payment processor event body, serialized once so replays are byte-identical."""
    return json.dumps(
        {
            "id": f"evt_{uuid.uuid4().hex[:24]}",
            "type": event_type,
            "data": {"object": {"object": "checkout.session", "id": session_id or checkout_session_id()}},
        }
    )


def print_status_callback(order_id: str, status: str = "IN_PRODUCTION", tracking_ids: list[str] | None = None) -> dict:
    line_items = [
        {
            "tracking_id": tracking_id,
            "tracking_urls": [f"https://tools.usps.com/go/TrackConfirmAction?tLabels={tracking_id}"],
        }
        for tracking_id in tracking_ids or []
    ]
    return {
        "topic": "PRINT_JOB_STATUS_CHANGED",
        "data": {
            "id": random.randint(10_000, 99_999),
            "external_id": order_id,
            "status": {"name": status, "message": fake.sentence()},
            "line_items": line_items,
        },
    }


def tracking_id() -> str:
    return f"94{fake.numerify('#' * 20)}"
