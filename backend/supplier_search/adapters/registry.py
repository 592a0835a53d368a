"""Registry of supplier adapter instances in priority order."""

from typing import Dict, Iterable, List, Optional

import structlog

from supplier_search.adapters.base import BaseSupplierAdapter


logger = structlog.get_logger(__name__)


class AdapterRegistry:
    """Ordered collection of configured adapters, keyed by slug.

    Registration order is priority order: the aggregator tries fallback
    estimators in the order they were registered.
    """

    def __init__(self, adapters: Optional[Iterable[BaseSupplierAdapter]] = None):
        self._adapters: Dict[str, BaseSupplierAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: BaseSupplierAdapter) -> None:
        """Register an adapter instance.

        Args:
            adapter: Adapter instance (must inherit from BaseSupplierAdapter)

        Raises:
            ValueError: If the adapter is of the wrong type or its slug is taken
        """
        if not isinstance(adapter, BaseSupplierAdapter):
            raise ValueError(f"Adapter must inherit from BaseSupplierAdapter: {adapter!r}")
        if not adapter.supplier_slug:
            raise ValueError(f"Adapter has no supplier_slug: {adapter!r}")
        if adapter.supplier_slug in self._adapters:
            raise ValueError(f"Adapter already registered: {adapter.supplier_slug}")

        self._adapters[adapter.supplier_slug] = adapter
        logger.debug(
            "adapter_registered",
            supplier_slug=adapter.supplier_slug,
            adapter_type=adapter.adapter_type,
            configured=adapter.is_configured(),
        )

    def get(self, slug: str) -> Optional[BaseSupplierAdapter]:
        return self._adapters.get(slug)

    def has_adapter(self, slug: str) -> bool:
        return slug in self._adapters

    def all(self) -> List[BaseSupplierAdapter]:
        return list(self._adapters.values())

    def slugs(self) -> List[str]:
        return list(self._adapters.keys())

    def select(self, slugs: Optional[Iterable[str]] = None) -> List[BaseSupplierAdapter]:
        """Adapters named in `slugs`, in registration order; all when None.

        Unknown slugs are logged and ignored.
        """
        if slugs is None:
            return self.all()

        wanted = set(slugs)
        unknown = wanted - set(self._adapters)
        if unknown:
            logger.warning("unknown_adapters_requested", slugs=sorted(unknown))
        return [a for slug, a in self._adapters.items() if slug in wanted]

    def __len__(self) -> int:
        return len(self._adapters)

    def __iter__(self):
        return iter(self._adapters.values())
