"""Services Package

Service layer for the progress core.  Services are created once through the
``ServiceFactory`` and fetched by the blueprints with the ``get_*_service``
helpers below.
"""

from typing import Any, Dict, Optional


class ServiceFactory:
    """Creates the service singletons and shares one catalog and store."""

    def __init__(self, data_root_path: Optional[str] = None):
        # Imported here so that importing a single service module (or
        # utils.validation) never pulls in the whole layer.
        from services.catalog_service import CatalogService
        from services.mock_test_service import MockTestService
        from services.progress_service import ProgressService
        from services.progress_store import ProgressStore
        from services.report_service import ReportService
        from services.rollup_service import RollupService
        from utils.data_loader import CatalogLoader

        self.catalog_loader = CatalogLoader(data_root_path)
        self.catalog_service = CatalogService()
        self.progress_store = ProgressStore()
        self.progress_service = ProgressService(self.catalog_service, self.progress_store)
        self.mock_test_service = MockTestService(
            self.catalog_service, self.progress_store
        )
        self.rollup_service = RollupService(self.catalog_service, self.progress_store)
        self.report_service = ReportService(self.catalog_service, self.progress_store)

    def get_all_services(self) -> Dict[str, Any]:
        return {
            "catalog_service": self.catalog_service,
            "progress_service": self.progress_service,
            "mock_test_service": self.mock_test_service,
            "rollup_service": self.rollup_service,
            "report_service": self.report_service,
        }


_service_factory: Optional[ServiceFactory] = None


def init_services(data_root_path: Optional[str] = None) -> ServiceFactory:
    """Create (or re-create) the global service factory."""
    global _service_factory
    _service_factory = ServiceFactory(data_root_path)
    return _service_factory


def get_service_factory() -> ServiceFactory:
    if _service_factory is None:
        return init_services()
    return _service_factory


def get_catalog_loader():
    return get_service_factory().catalog_loader


def get_catalog_service():
    return get_service_factory().catalog_service


def get_progress_service():
    return get_service_factory().progress_service


def get_mock_test_service():
    return get_service_factory().mock_test_service


def get_rollup_service():
    return get_service_factory().rollup_service


def get_report_service():
    return get_service_factory().report_service
