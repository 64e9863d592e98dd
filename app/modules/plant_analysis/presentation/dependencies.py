# 📄 File: app/modules/plant_analysis/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Puts all the pieces of plant analysis together (outside services, quota counters, caches and
# stores) and hands them to the web endpoints when a request comes in.
#
# 🧪 Purpose (Technical Summary):
# Composition root for the plant_analysis module. Builds one ThrottledClient per provider bucket,
# the provider adapters, the shared-state backends (memory or Redis per STATE_BACKEND), the domain
# services and the AnalysisPipeline, then exposes them as FastAPI dependencies via app.state.
#
# 🔗 Dependencies:
# - FastAPI (Request, Header dependencies)
# - app.shared.config (settings, Redis client)
# - app.shared.core.rate_limiter, app.shared.infrastructure (cache, external APIs)
# - plant_analysis infrastructure adapters and domain services
#
# 🔄 Connected Modules / Calls From:
# - app.main (container construction in the app factory, cleanup in lifespan)
# - app.modules.plant_analysis.presentation.api.v1.identify (endpoint dependencies)

"""
Plant Analysis Module Dependencies

Every collaborator can be replaced at construction time, which is how tests
inject fake providers, clocks and billing state without touching the network.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from fastapi import Header, Request, status

from app.shared.config.redis import get_redis_client
from app.shared.config.settings import Settings, get_settings
from app.shared.core.exceptions import DiagnosisException
from app.shared.core.rate_limiter import InMemoryQuotaStore, QuotaStore, RedisQuotaStore, ThrottleConfig
from app.shared.infrastructure.cache import InMemoryCacheBackend, RedisCacheBackend, ResponseCache
from app.shared.infrastructure.external_apis import (
    APIClient,
    ThrottledClient,
    get_priority_order,
    register_api_client,
)
from app.shared.utils.logging import get_logger

from ..application.handlers.analysis_pipeline import AnalysisPipeline
from ..domain.repositories.billing_gateway import BillingGateway
from ..domain.repositories.providers import CatalogProvider, GenerativeProvider, IdentificationProvider
from ..domain.repositories.result_store import ResultStore
from ..domain.repositories.usage_ledger_repository import UsageLedgerRepository
from ..domain.services import (
    CarePlanSynthesizer,
    CatalogEnricher,
    HealthAssessor,
    ImageQualityGate,
    SpeciesIdentifier,
    UsageLedger,
)
from ..infrastructure.database import (
    InMemoryResultStore,
    InMemoryUsageLedgerRepository,
    RedisUsageLedgerRepository,
    SubscriptionBillingGateway,
)
from ..infrastructure.providers import (
    GeminiProvider,
    PerenualCatalogProvider,
    PlantIdProvider,
    TrefleCatalogProvider,
)

logger = get_logger(__name__)

# Catalog adapter class and how its key is sent
_CATALOG_ADAPTERS = {
    'perenual': (PerenualCatalogProvider, 'key'),
    'trefle': (TrefleCatalogProvider, 'token'),
}


class PlantAnalysisContainer:
    """Wires the plant analysis module from settings."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        identification_provider: Optional[IdentificationProvider] = None,
        generative_provider: Optional[GenerativeProvider] = None,
        catalog_providers: Optional[Sequence[CatalogProvider]] = None,
        billing: Optional[BillingGateway] = None,
        ledger_repository: Optional[UsageLedgerRepository] = None,
        result_store: Optional[ResultStore] = None,
        quota_store: Optional[QuotaStore] = None,
        cache: Optional[ResponseCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        use_redis = self.settings.STATE_BACKEND == 'redis'
        redis_client = get_redis_client() if use_redis else None

        # Shared state
        if quota_store is None:
            quota_store = RedisQuotaStore(redis_client) if use_redis else InMemoryQuotaStore()
        self.quota_store = quota_store

        if cache is None:
            backend = RedisCacheBackend(redis_client) if use_redis else InMemoryCacheBackend()
            cache = ResponseCache(backend, clock=clock)
        self.cache = cache

        if ledger_repository is None:
            ledger_repository = (
                RedisUsageLedgerRepository(redis_client) if use_redis else InMemoryUsageLedgerRepository()
            )
        self.ledger_repository = ledger_repository

        self.result_store = result_store or InMemoryResultStore()
        self.billing = billing or SubscriptionBillingGateway(clock=clock)

        # One throttle per provider bucket, shared by every call site of that provider
        self.throttles: Dict[str, ThrottledClient] = {
            name: ThrottledClient(
                ThrottleConfig.from_settings(name, self.settings),
                self.quota_store,
                clock=clock,
                quota_timezone=self.settings.QUOTA_TIMEZONE,
            )
            for name in self.settings.get_provider_config()
        }

        self.identification_provider = identification_provider or self._build_plant_id()
        self.generative_provider = generative_provider or self._build_gemini()
        if catalog_providers is None:
            catalog_providers = self._build_catalogs()
        self.catalog_providers: List[CatalogProvider] = list(catalog_providers)

        # Domain services
        self.usage_ledger = UsageLedger(
            self.ledger_repository,
            self.billing,
            allowance=self.settings.FREE_TIER_ALLOWANCE,
            window_days=self.settings.FREE_TIER_WINDOW_DAYS,
            clock=clock,
        )
        self.quality_gate = ImageQualityGate(
            self.generative_provider, min_dimension=self.settings.MIN_IMAGE_DIMENSION
        )
        self.identifier = SpeciesIdentifier(
            self.identification_provider,
            confidence_threshold=self.settings.IDENTIFICATION_CONFIDENCE_THRESHOLD,
        )
        self.enricher = CatalogEnricher(
            self.catalog_providers, self.cache, ttl_seconds=self.settings.CACHE_CATALOG_TTL
        )
        self.health_assessor = HealthAssessor(
            self.identification_provider,
            self.generative_provider,
            min_probability=self.settings.HEALTH_FINDING_MIN_PROBABILITY,
        )
        self.care_planner = CarePlanSynthesizer(self.generative_provider)

        self.pipeline = AnalysisPipeline(
            usage_ledger=self.usage_ledger,
            quality_gate=self.quality_gate,
            identifier=self.identifier,
            enricher=self.enricher,
            health_assessor=self.health_assessor,
            care_planner=self.care_planner,
            result_store=self.result_store,
        )
        logger.info(
            "Plant analysis module wired",
            state_backend=self.settings.STATE_BACKEND,
            catalog_providers=[p.name for p in self.catalog_providers],
        )

    # =========================================================================
    # PROVIDER CONSTRUCTION
    # =========================================================================

    def _client(self, name: str, **auth) -> APIClient:
        config = self.settings.get_provider_config()[name]
        client = APIClient(
            base_url=config['api_url'],
            api_name=name,
            api_key=config['api_key'],
            timeout=self.settings.PROVIDER_TIMEOUT,
            max_retries=self.settings.PROVIDER_MAX_RETRIES,
            **auth,
        )
        register_api_client(name, client)
        return client

    def _build_plant_id(self) -> PlantIdProvider:
        return PlantIdProvider(self._client('plant_id', auth_header='Api-Key'), self.throttles['plant_id'])

    def _build_gemini(self) -> GeminiProvider:
        return GeminiProvider(
            self._client('gemini', auth_param='key'),
            self.throttles['gemini'],
            model=self.settings.GOOGLE_GEMINI_MODEL,
            fast_model=self.settings.GOOGLE_GEMINI_FAST_MODEL,
        )

    def _build_catalogs(self) -> List[CatalogProvider]:
        providers: List[CatalogProvider] = []
        for name in get_priority_order(self.settings, 'catalog'):
            adapter, auth_param = _CATALOG_ADAPTERS[name]
            providers.append(adapter(self._client(name, auth_param=auth_param), self.throttles[name]))
        return providers


# =========================================================================
# FASTAPI DEPENDENCIES
# =========================================================================

def get_container(request: Request) -> PlantAnalysisContainer:
    """The container attached to the running application."""
    return request.app.state.plant_analysis


def get_module_settings(request: Request) -> Settings:
    return get_container(request).settings


def get_pipeline(request: Request) -> AnalysisPipeline:
    return get_container(request).pipeline


def get_usage_ledger(request: Request) -> UsageLedger:
    return get_container(request).usage_ledger


def get_result_store(request: Request) -> ResultStore:
    return get_container(request).result_store


async def get_caller_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    """
    Caller identity from the X-User-Id header. Authentication happens upstream.

    Raises:
        DiagnosisException: Header missing or blank (400)
    """
    if x_user_id is None or not x_user_id.strip():
        raise DiagnosisException(
            "X-User-Id header is required",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="MISSING_CALLER_ID",
        )
    return x_user_id.strip()
