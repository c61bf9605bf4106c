"""License provider factory.

``build_license_provider(settings)`` returns the adapter selected by
``LICENSE_SERVICE``:
- FakeLicenseProvider for development and testing
- CentralIdentityLicenseProvider for production
"""

from licensing.provider.fake_adapter import FakeLicenseProvider
from licensing.provider.port import LicenseProvider


def build_license_provider(settings) -> LicenseProvider:
    if settings.license_service == "fake":
        return FakeLicenseProvider()
    if settings.license_service == "central_identity":
        from licensing.provider.central_identity_adapter import CentralIdentityLicenseProvider

        return CentralIdentityLicenseProvider(
            base_url=settings.central_identity_url,
            user=settings.central_identity_user,
            key=settings.central_identity_key,
            timeout_seconds=settings.external_timeout_seconds,
        )
    raise ValueError(f"Unknown license service: {settings.license_service}")
