"""Store fulfillment load test scenarios.

Webhook providers deliver at least once and retry aggressively, so the main
scenarios replay identical payloads concurrently:

- PaymentWebhookReplayUser: the same payment event, many times. Exactly one
  delivery may be ``accepted``; the rest must be ``duplicate`` or ``ignored``.
- PrintCallbackReplayUser: the same status callbacks for one order. Every
  replay must return 200; the order's ledger must not grow past one entry
  per (status, tracking id).
- StorefrontUser: book price and order list reads.

Against the fake adapters, set LOADTEST_PAYMENT_SIGNATURE=test-signature.
PrintCallbackReplayUser targets LOADTEST_ORDER_ID (an existing order).
"""

import os
import random

from locust import HttpUser, between, constant_pacing, task

from loadtests.data_generators import (
    checkout_session_id,
    page_count,
    payment_event,
    print_status_callback,
    tracking_id,
)
from loadtests.helpers.response import extract_error_detail

PAYMENT_SIGNATURE = os.environ.get("LOADTEST_PAYMENT_SIGNATURE", "test-signature")
PRINT_SIGNATURE = os.environ.get("LOADTEST_PRINT_SIGNATURE", "")
TARGET_ORDER_ID = os.environ.get("LOADTEST_ORDER_ID", "")


class PaymentWebhookReplayUser(HttpUser):
    """Replays a small pool of payment events to hammer idempotent intake."""

    wait_time = constant_pacing(0.2)

    def on_start(self):
        self.events = [payment_event(checkout_session_id()) for _ in range(3)]

    @task
    def replay_payment_event(self):
        with self.client.post(
            "/store/webhooks/payments",
            data=random.choice(self.events),
            headers={"Stripe-Signature": PAYMENT_SIGNATURE, "Content-Type": "application/json"},
            catch_response=True,
            name="POST /store/webhooks/payments [replay]",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Payment webhook failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif resp.json().get("status") not in ("accepted", "duplicate", "ignored"):
                resp.failure(f"Unexpected payment webhook status: {resp.text[:200]}")


class PrintCallbackReplayUser(HttpUser):
    """Replays IN_PRODUCTION and SHIPPED callbacks for one order."""

    wait_time = between(0.05, 0.2)

    def on_start(self):
        self.order_id = TARGET_ORDER_ID or checkout_session_id()
        self.tracking_ids = [tracking_id()]
        self.callbacks = [
            print_status_callback(self.order_id, "IN_PRODUCTION"),
            print_status_callback(self.order_id, "SHIPPED", self.tracking_ids),
        ]

    @task(4)
    def replay_status_callback(self):
        with self.client.post(
            "/store/webhooks/print-jobs",
            json=random.choice(self.callbacks),
            headers={"Lulu-HMAC-SHA256": PRINT_SIGNATURE},
            catch_response=True,
            name="POST /store/webhooks/print-jobs [replay]",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Print webhook failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task(1)
    def ignored_topic(self):
        self.client.post(
            "/store/webhooks/print-jobs",
            json={"topic": "PRINT_JOB_CREATED", "data": {}},
            headers={"Lulu-HMAC-SHA256": PRINT_SIGNATURE},
            name="POST /store/webhooks/print-jobs [other topic]",
        )


class StorefrontUser(HttpUser):
    """Read traffic from the storefront and the admin dashboard."""

    wait_time = between(0.5, 2)

    @task(5)
    def book_prices(self):
        self.client.get(
            "/store/book-prices",
            params={"num_pages": page_count()},
            name="GET /store/book-prices",
        )

    @task(1)
    def list_orders(self):
        self.client.get(
            "/store/orders",
            params={"limit": 25, "status": random.choice(["pending", "completed", "failed"])},
            name="GET /store/orders",
        )
