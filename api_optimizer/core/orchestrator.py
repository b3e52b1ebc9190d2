"""
Request orchestration.

Turns an inbound completion request into either a cached response or an
upstream call with a possibly substituted model.

Pipeline order:
1. Fingerprint the request
2. Serve a live cache entry (no routing, no upstream call)
3. Recommend a model when smart routing is enabled
4. Call the upstream provider
5. Compute the actual cost from reported usage
6. Cache the response under the original request's key
7. Report the usage event
8. Return the upstream response unchanged

There is no coalescing of identical in-flight requests: concurrent misses
on the same key each call upstream.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol

from api_optimizer.config.loader import OptimizerConfig
from api_optimizer.storage.models import UsageEvent

from .cache import CacheStore, generate_cache_key
from .compression import compress_prompt
from .errors import CacheStoreError, ConfigurationError, UpstreamError
from .pricing import calculate_cost
from .recommendation import Recommendation, recommend_model
from .request import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)


class Upstream(Protocol):
    """Provider call collaborator."""

    def invoke(
        self,
        provider: str,
        model: str,
        messages: List[Dict[str, Optional[str]]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> CompletionResponse:
        ...


class UsageReporter(Protocol):
    """Analytics collaborator."""

    def report(self, event: UsageEvent) -> None:
        ...


class RequestOrchestrator:
    """Sequences cache lookup, routing, upstream call and usage reporting.

    Only UpstreamError and ConfigurationError reach the caller. Cache and
    reporting failures degrade to "not cached" / "not recorded".
    """

    def __init__(
        self,
        upstream: Upstream,
        reporter: Optional[UsageReporter] = None,
        cache: Optional[CacheStore] = None,
        config: Optional[OptimizerConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the orchestrator.

        Args:
            upstream: Provider call collaborator
            reporter: Usage event sink (events are only logged if omitted)
            cache: Cache store owned by this orchestrator (created if omitted)
            config: Default configuration for complete()
            clock: Timestamp source for usage events
        """
        self.config = config or OptimizerConfig()
        self.upstream = upstream
        self.reporter = reporter
        self.cache = cache if cache is not None else CacheStore(
            default_ttl_seconds=self.config.cache_ttl_seconds,
            max_entries=self.config.max_cache_entries,
        )
        self._clock = clock

    def complete(
        self,
        request: CompletionRequest,
        config: Optional[OptimizerConfig] = None,
        compress: bool = False,
    ) -> CompletionResponse:
        """Complete a request through the optimization pipeline.

        Args:
            request: Validated completion request
            config: Per-call configuration (defaults to the orchestrator's)
            compress: Apply prompt compression before anything else

        Returns:
            Cached or upstream CompletionResponse

        Raises:
            UpstreamError: The provider call failed
            ConfigurationError: The provider is not configured
        """
        config = config or self.config
        if compress:
            request = request.with_messages(compress_prompt(request.messages))

        key = generate_cache_key(request)

        if config.cache_enabled:
            cached = self._cache_get(key)
            if cached is not None:
                logger.debug("Cache hit for %s/%s", request.provider, request.model)
                self._report(UsageEvent(
                    timestamp=self._clock(),
                    provider=request.provider,
                    model=request.model,
                    cache_hit=True,
                    cost=0.0,
                    tokens=0,
                ))
                return cached

        recommendation: Optional[Recommendation] = None
        final_model = request.model
        if config.smart_routing_enabled:
            recommendation = recommend_model(request, request.provider, request.model)
            final_model = recommendation.model
            if final_model != request.model:
                logger.info(
                    "Routing %s -> %s: %s", request.model, final_model, recommendation.reason
                )

        try:
            response = self.upstream.invoke(
                request.provider,
                final_model,
                request.message_dicts(),
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except (UpstreamError, ConfigurationError) as e:
            self._report_failure(request, final_model, recommendation, e)
            raise
        except Exception as e:
            self._report_failure(request, final_model, recommendation, e)
            raise UpstreamError(
                f"Malformed upstream response: {e}", provider=request.provider
            ) from e

        cost = calculate_cost(request.provider, final_model, response.usage)

        if config.cache_enabled:
            self._cache_put(key, response, config.cache_ttl_seconds)

        self._report(UsageEvent(
            timestamp=self._clock(),
            provider=request.provider,
            model=final_model,
            original_model=request.model,
            cache_hit=False,
            cost=cost,
            tokens=response.usage.total_tokens,
            recommendation_reason=recommendation.reason if recommendation else None,
            savings=recommendation.estimated_savings if recommendation else 0.0,
        ))

        return response

    def _cache_get(self, key: str) -> Optional[CompletionResponse]:
        try:
            return self.cache.get(key)
        except CacheStoreError:
            logger.warning("Cache lookup failed; continuing uncached", exc_info=True)
            return None

    def _cache_put(self, key: str, response: CompletionResponse, ttl_seconds: float) -> None:
        try:
            self.cache.put(key, response, ttl_seconds)
        except CacheStoreError:
            logger.warning("Cache insert failed; response not cached", exc_info=True)

    def _report_failure(
        self,
        request: CompletionRequest,
        final_model: str,
        recommendation: Optional[Recommendation],
        error: Exception,
    ) -> None:
        logger.warning("Upstream call to %s/%s failed: %s", request.provider, final_model, error)
        self._report(UsageEvent(
            timestamp=self._clock(),
            provider=request.provider,
            model=final_model,
            original_model=request.model,
            cache_hit=False,
            cost=0.0,
            tokens=0,
            recommendation_reason=recommendation.reason if recommendation else None,
            savings=0.0,
            error=str(error) or error.__class__.__name__,
        ))

    def _report(self, event: UsageEvent) -> None:
        # Reporting is best-effort and never fails the request
        if self.reporter is None:
            logger.debug("Usage event: %s", event)
            return
        try:
            self.reporter.report(event)
        except Exception:
            logger.warning("Failed to report usage event", exc_info=True)


def create_orchestrator(config: OptimizerConfig) -> RequestOrchestrator:
    """Wire an orchestrator with the OpenAI upstream and SQLite analytics.

    Args:
        config: Validated configuration

    Returns:
        Ready-to-use RequestOrchestrator
    """
    from api_optimizer.sdk.openai_client import OpenAIUpstream
    from api_optimizer.storage.repository import UsageRepository, initialize_schema

    initialize_schema(config.db_path)
    return RequestOrchestrator(
        upstream=OpenAIUpstream(timeout=config.upstream_timeout_seconds),
        reporter=UsageRepository(config.db_path),
        config=config,
    )
