"""Application tests for order intake and the fulfillment stages."""

from fulfillment.errors import FulfillmentErrorCode
from fulfillment.order.order import OrderStatus, StageOutcome
from payments.gateway.port import CheckoutLineItem


class TestAccept:
    def test_accept_creates_pending_order(self, services, make_session):
        session = make_session("cs_accept_001", account_id="acct-1")
        order, is_new = services.orchestrator.accept(session)

        assert is_new is True
        assert order.id == "cs_accept_001"
        assert order.status == OrderStatus.PENDING.value
        assert order.customer_email == "a@example.com"
        assert order.account_id == "acct-1"

    def test_duplicate_accept_returns_existing_order(self, services, make_session):
        session = make_session("cs_accept_002")
        services.orchestrator.accept(session)
        order, is_new = services.orchestrator.accept(session)

        assert is_new is False
        assert order.id == "cs_accept_002"
        assert services.store.list_orders().total_count == 1


class TestBookOrders:
    def test_print_job_created_and_recorded(self, services, accepted, print_provider):
        order, _ = accepted()
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.PENDING.value
        assert order.print_job_id == "1000"
        assert order.print_job_status == "CREATED"
        assert order.print_stage == StageOutcome.DONE.value
        assert order.digital_stage == StageOutcome.NOT_REQUIRED.value
        assert len(print_provider.jobs) == 1

    def test_print_job_contents(self, services, accepted, print_provider):
        order, _ = accepted()
        services.orchestrator.fulfill(order.id)

        job = print_provider.jobs[0]
        assert job.external_id == order.id
        assert job.shipping_level == "GROUND"
        assert job.shipping_address.postcode == "95616"

        (item,) = job.line_items
        assert item.external_id == "calc-101"
        assert item.pod_package_id == "0850X1100BWSTDPB060UW444MXX"
        assert item.cover_url == "https://batch.libretexts.org/print/Finished/calc-101/Publication/Cover_PerfectBound.pdf"
        assert item.interior_url.endswith("/calc-101/Publication/Content.pdf")

    def test_shipping_level_defaults_to_mail(self, services, accepted, lines, print_provider):
        order, _ = accepted(items=(lines.book_hc_color, lines.ship_mail))
        services.orchestrator.fulfill(order.id)

        job = print_provider.jobs[0]
        assert job.shipping_level == "MAIL"
        assert job.line_items[0].pod_package_id == "0850X1100FCSTDCW060UW444MXX"

    def test_non_actionable_items_are_ignored(self, services, accepted, lines, print_provider):
        order, _ = accepted(items=(lines.book_pb, lines.mug, lines.ship_ground))
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.PENDING.value
        assert len(print_provider.jobs[0].line_items) == 1

    def test_confirmation_email_sent_once(self, services, accepted, email):
        order, _ = accepted()
        order = services.orchestrator.fulfill(order.id)

        assert len(email.sent_to("a@example.com")) == 1
        assert ("ORDER_CONFIRMED", None) in order.notification_ledger

    def test_fulfill_again_creates_no_second_job(self, services, accepted, print_provider, email):
        order, _ = accepted()
        services.orchestrator.fulfill(order.id)
        order = services.orchestrator.fulfill(order.id)

        assert len(print_provider.jobs) == 1
        assert order.print_job_submissions == 1
        assert len(email.sent_emails) == 1

    def test_session_passed_in_skips_lookup(self, services, accepted, gateway):
        order, session = accepted()
        gateway.calls.clear()
        services.orchestrator.fulfill(order.id, session)

        assert not any(call["method"] == "retrieve_checkout_session" for call in gateway.calls)


class TestDigitalOrders:
    def test_digital_only_order_completes(self, services, accepted, lines, print_provider, license_provider):
        order, _ = accepted(items=(lines.digital,), shipping_address=None)
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.COMPLETED.value
        assert order.print_stage == StageOutcome.NOT_REQUIRED.value
        assert order.digital_stage == StageOutcome.DONE.value
        assert print_provider.jobs == []
        assert print_provider.quote_requests == []
        assert license_provider.calls == [
            {"method": "generate_access_code", "price_id": "price_homework", "email": "a@example.com"}
        ]

    def test_apply_to_account_uses_session_account(self, services, accepted, lines, license_provider):
        order, _ = accepted(items=(lines.app_license,), shipping_address=None, account_id="acct-42")
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.COMPLETED.value
        assert license_provider.calls == [
            {"method": "grant_license", "price_id": "price_app_license", "account_id": "acct-42"}
        ]

    def test_session_delivery_option_is_the_default(self, services, accepted, lines, license_provider):
        order, _ = accepted(
            items=(lines.digital,),
            shipping_address=None,
            account_id="acct-7",
            digital_delivery_option="apply_to_account",
        )
        services.orchestrator.fulfill(order.id)

        assert license_provider.calls[0]["method"] == "grant_license"

    def test_apply_to_account_without_account_fails_before_any_call(self, services, accepted, lines, license_provider):
        order, _ = accepted(items=(lines.app_license,), shipping_address=None)
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.FAILED.value
        assert order.error == FulfillmentErrorCode.INVALID_DIGITAL_DELIVERY_OPTION.value
        assert license_provider.calls == []

    def test_unknown_delivery_option_fails(self, services, accepted, lines, license_provider):
        order, _ = accepted(items=(lines.digital,), shipping_address=None, digital_delivery_option="carrier_pigeon")
        order = services.orchestrator.fulfill(order.id)

        assert order.error == FulfillmentErrorCode.INVALID_DIGITAL_DELIVERY_OPTION.value
        assert license_provider.calls == []


class TestMixedOrders:
    def test_books_and_digital_both_fulfilled(self, services, accepted, lines, print_provider, license_provider):
        order, _ = accepted(items=(lines.book_pb, lines.digital, lines.ship_ground))
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.PENDING.value
        assert order.print_stage == StageOutcome.DONE.value
        assert order.digital_stage == StageOutcome.DONE.value
        assert len(print_provider.jobs) == 1
        assert len(license_provider.calls) == 1

    def test_print_failure_still_delivers_digital(self, services, accepted, lines, print_provider, license_provider, email):
        print_provider.configure(should_succeed=False, failure_reason="Lulu is down")
        order, _ = accepted(items=(lines.book_pb, lines.digital, lines.ship_ground))
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.FAILED.value
        assert order.error == FulfillmentErrorCode.PRINT_JOB_CREATE_FAILED.value
        assert order.error_detail == "Lulu is down"
        assert order.print_stage == StageOutcome.FAILED.value
        assert order.digital_stage == StageOutcome.DONE.value
        assert len(license_provider.calls) == 1
        assert email.sent_emails == []

    def test_digital_failure_keeps_print_job(self, services, accepted, lines, license_provider):
        license_provider.configure(True, failing_price_ids={"price_homework"})
        order, _ = accepted(items=(lines.book_pb, lines.digital, lines.ship_ground))
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.FAILED.value
        assert order.error == FulfillmentErrorCode.DIGITAL_DELIVERY_FAILED.value
        assert order.print_job_id == "1000"
        assert order.print_stage == StageOutcome.DONE.value
        assert order.digital_stage == StageOutcome.FAILED.value


class TestValidationFailures:
    def test_missing_email(self, services, accepted, print_provider):
        order, _ = accepted(customer_email=None)
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.FAILED.value
        assert order.error == FulfillmentErrorCode.MISSING_EMAIL.value
        assert print_provider.jobs == []

    def test_missing_shipping_item(self, services, accepted, lines, print_provider):
        order, _ = accepted(items=(lines.book_pb,))
        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.FAILED.value
        assert order.error == FulfillmentErrorCode.MISSING_SHIPPING_ITEM.value
        assert order.print_stage == StageOutcome.PENDING.value
        assert print_provider.jobs == []

    def test_missing_shipping_address(self, services, accepted, print_provider):
        order, _ = accepted(shipping_address=None)
        order = services.orchestrator.fulfill(order.id)

        assert order.error == FulfillmentErrorCode.MISSING_SHIPPING_ITEM.value
        assert print_provider.jobs == []

    def test_two_shipping_items(self, services, accepted, lines, print_provider, license_provider):
        order, _ = accepted(items=(lines.book_pb, lines.digital, lines.ship_ground, lines.ship_mail))
        order = services.orchestrator.fulfill(order.id)

        assert order.error == FulfillmentErrorCode.INVALID_LINE_ITEM.value
        assert print_provider.jobs == []
        assert license_provider.calls == []

    def test_price_from_another_product(self, services, accepted, print_provider):
        mismatched = CheckoutLineItem(product_id="prod_chemistry", price_id="price_calculus_pb_bw")
        order, _ = accepted(items=(mismatched,))
        order = services.orchestrator.fulfill(order.id)

        assert order.error == FulfillmentErrorCode.LINE_ITEM_PRODUCT_MISMATCH.value
        assert print_provider.jobs == []

    def test_unknown_price(self, services, accepted):
        order, _ = accepted(items=(CheckoutLineItem(product_id="prod_calculus", price_id="price_gone"),))
        order = services.orchestrator.fulfill(order.id)

        assert order.error == FulfillmentErrorCode.INVALID_LINE_ITEM_PRICE.value

    def test_no_line_items(self, services, accepted):
        order, _ = accepted(items=())
        order = services.orchestrator.fulfill(order.id)

        assert order.error == FulfillmentErrorCode.NO_LINE_ITEMS.value

    def test_checkout_session_gone(self, services):
        services.store.create_or_get("cs_ghost", customer_email="a@example.com")
        order = services.orchestrator.fulfill("cs_ghost")

        assert order.status == OrderStatus.FAILED.value
        assert order.error == FulfillmentErrorCode.CHECKOUT_SESSION_NOT_FOUND.value

    def test_failed_order_is_not_fulfilled_again(self, services, accepted, gateway, print_provider):
        order, _ = accepted(customer_email=None)
        services.orchestrator.fulfill(order.id)
        gateway.calls.clear()

        order = services.orchestrator.fulfill(order.id)

        assert order.status == OrderStatus.FAILED.value
        assert gateway.calls == []
        assert print_provider.jobs == []
