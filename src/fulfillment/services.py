"""Composition root for the fulfillment service.

Every adapter and application service is built once here and passed down
explicitly. Tests build the same graph with fakes and override any piece by
keyword.
"""

from dataclasses import dataclass

from catalogue.shipping import ShippingOptionResolver
from fulfillment.config import FulfillmentSettings
from fulfillment.order.intake import OrderFulfillmentOrchestrator
from fulfillment.order.notify import OrderNotifier
from fulfillment.order.print_jobs import PrintJobOrchestrator
from fulfillment.order.print_status import PrintStatusEngine
from fulfillment.order.reconciliation import OrderReconciler
from fulfillment.order.store import OrderStore
from fulfillment.printer import build_print_provider
from fulfillment.printer.port import PrintProvider
from licensing.delivery import DigitalDeliveryProcessor
from licensing.provider import build_license_provider
from licensing.provider.port import LicenseProvider
from notifications.channel import build_email_channel
from notifications.channel.email_port import EmailPort
from notifications.notifier import CustomerNotifier
from payments.gateway import build_gateway
from payments.gateway.port import PaymentGateway


@dataclass
class FulfillmentServices:
    settings: FulfillmentSettings
    gateway: PaymentGateway
    print_provider: PrintProvider
    license_provider: LicenseProvider
    email: EmailPort
    store: OrderStore
    print_jobs: PrintJobOrchestrator
    status_engine: PrintStatusEngine
    orchestrator: OrderFulfillmentOrchestrator
    reconciler: OrderReconciler
    shipping_options: ShippingOptionResolver


def build_services(
    settings: FulfillmentSettings | None = None,
    *,
    gateway: PaymentGateway | None = None,
    print_provider: PrintProvider | None = None,
    license_provider: LicenseProvider | None = None,
    email: EmailPort | None = None,
    store: OrderStore | None = None,
) -> FulfillmentServices:
    settings = settings or FulfillmentSettings.from_env()
    gateway = gateway or build_gateway(settings)
    print_provider = print_provider or build_print_provider(settings)
    license_provider = license_provider or build_license_provider(settings)
    email = email or build_email_channel(settings)
    store = store or OrderStore()

    notifier = OrderNotifier(store, CustomerNotifier(email))
    digital_delivery = DigitalDeliveryProcessor(license_provider)
    print_jobs = PrintJobOrchestrator(
        store,
        print_provider,
        gateway,
        settings.print_source_template,
        digital_delivery=digital_delivery,
    )
    orchestrator = OrderFulfillmentOrchestrator(store, gateway, print_jobs, digital_delivery, notifier)

    return FulfillmentServices(
        settings=settings,
        gateway=gateway,
        print_provider=print_provider,
        license_provider=license_provider,
        email=email,
        store=store,
        print_jobs=print_jobs,
        status_engine=PrintStatusEngine(store, notifier),
        orchestrator=orchestrator,
        reconciler=OrderReconciler(store, orchestrator, settings.reconcile_after_seconds),
        shipping_options=ShippingOptionResolver(gateway, print_provider),
    )
