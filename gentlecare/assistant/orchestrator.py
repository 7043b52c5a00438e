"""
The Orchestrator - single entry point for a query.

  Router      → on_device / cloud / hybrid decision
  Dispatch    → one provider call, or the hybrid sequence
                (build_context → cloud chat → personalize)
  Fallback    → one on-device answer if the cloud path failed
  Ledger      → signed privacy record (optional)

process() never raises for provider failures. A cloud failure is kept in
`last_error` and the on-device answer is returned instead. The on-device
capability cannot fail, so there is no further tier.

Calls are strictly sequential; nothing here runs two providers at once.
Submitting one query at a time is the caller's job.
"""

from __future__ import annotations
import asyncio
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Union, assert_never

from ..errors import LedgerError
from .capabilities import (
    CloudCapability,
    CloudFailure,
    ConnectivityCapability,
    OnDeviceCapability,
)
from .classifier import QueryClassifier
from .router import Router
from .schemas import AssistantResponse, ProfileSnapshot, Provider, Query, RoutingDecision
from .sensitivity import SensitivityFilter

if TYPE_CHECKING:
    from ..config import AssistantConfig
    from .ledger import PrivacyLedger

logger = logging.getLogger(__name__)


class ProcessingState(str, Enum):
    IDLE = "idle"
    ROUTING = "routing"
    DISPATCHING = "dispatching"
    SUCCEEDED = "succeeded"
    FAILED_THEN_FALLING_BACK = "failed_then_falling_back"
    FALLBACK_SUCCEEDED = "fallback_succeeded"


class Orchestrator:
    """Routes a query, runs it, falls back on cloud failure."""

    def __init__(
        self,
        on_device: OnDeviceCapability,
        cloud: CloudCapability,
        router: Router,
        ledger: Optional["PrivacyLedger"] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.on_device = on_device
        self.cloud = cloud
        self.router = router
        self.ledger = ledger
        self.clock = clock

        # Observation only
        self.state = ProcessingState.IDLE
        self.is_processing = False
        self.current_provider: Optional[Provider] = None
        self.last_error: Optional[str] = None
        self.last_decision: Optional[RoutingDecision] = None

    @classmethod
    def from_config(
        cls,
        config: "AssistantConfig",
        connectivity: Optional[ConnectivityCapability] = None,
    ) -> "Orchestrator":
        """Wire the concrete on-device, cloud and connectivity layers from config."""
        from .cloud import CloudAssistant
        from .connectivity import HttpConnectivity, StaticConnectivity
        from .ledger import PrivacyLedger
        from .on_device import OnDeviceAssistant

        if connectivity is None:
            if config.connectivity.offline:
                connectivity = StaticConnectivity(False)
            else:
                connectivity = HttpConnectivity(
                    probe_url=config.connectivity.probe_url,
                    timeout=config.connectivity.timeout,
                )

        router = Router(
            connectivity=connectivity,
            classifier=QueryClassifier.from_keywords(
                config.routing.keywords,
                simple_word_limit=config.routing.simple_word_limit,
            ),
            sensitivity=SensitivityFilter(config.routing.sensitive_terms),
            default_mode=config.routing.default_mode,
        )
        cloud = CloudAssistant(
            backend=config.cloud.backend,
            model=config.cloud.model,
            base_url=config.cloud.base_url,
            api_key=config.cloud.resolved_api_key,
            timeout=config.cloud.timeout,
            max_tokens=config.cloud.max_tokens,
            companion_name=config.companion_name,
        )
        ledger = PrivacyLedger(config.audit.log_dir) if config.audit.enabled else None

        return cls(
            on_device=OnDeviceAssistant(fallback_name=config.fallback_name),
            cloud=cloud,
            router=router,
            ledger=ledger,
        )

    async def _dispatch(
        self,
        decision: RoutingDecision,
        query: str,
        profile: Optional[ProfileSnapshot],
    ) -> Union[str, CloudFailure]:
        provider = decision.provider

        if provider is Provider.ON_DEVICE:
            return await self.on_device.process(query, profile)

        elif provider is Provider.CLOUD:
            result = await self.cloud.chat(query, None, profile)
            if isinstance(result, CloudFailure):
                return result
            return result.text

        elif provider is Provider.HYBRID:
            context = await self.on_device.build_context(profile)
            result = await self.cloud.chat(query, context, profile)
            if isinstance(result, CloudFailure):
                return result
            return await self.on_device.personalize(result.text, profile)

        else:
            assert_never(provider)

    async def process(
        self,
        query: Union[str, Query],
        profile: Optional[ProfileSnapshot] = None,
    ) -> AssistantResponse:
        """Answer one query. Cloud failures degrade to an on-device answer."""
        text = query.text if isinstance(query, Query) else query
        t0 = self.clock()
        self.is_processing = True
        self.last_error = None

        try:
            self.state = ProcessingState.ROUTING
            # Connectivity checks may block on the network
            decision = await asyncio.to_thread(self.router.route, text, profile)
            self.last_decision = decision
            self.current_provider = decision.provider
            logger.debug(
                "Routed to %s (%s)", decision.provider.value, decision.reason.value
            )

            self.state = ProcessingState.DISPATCHING
            outcome = await self._dispatch(decision, text, profile)

            if isinstance(outcome, CloudFailure):
                self.state = ProcessingState.FAILED_THEN_FALLING_BACK
                self.last_error = f"{outcome.kind.value}: {outcome.message}"
                logger.warning(
                    "%s path failed (%s), answering on device",
                    decision.provider.value, self.last_error,
                )
                content = await self.on_device.process(text, profile)
                self.current_provider = Provider.ON_DEVICE
                response = AssistantResponse(
                    content=content,
                    provider=Provider.ON_DEVICE,
                    processing_time=self.clock() - t0,
                    decision=decision,
                    fell_back=True,
                )
                self.state = ProcessingState.FALLBACK_SUCCEEDED
            else:
                response = AssistantResponse(
                    content=outcome,
                    provider=decision.provider,
                    processing_time=self.clock() - t0,
                    decision=decision,
                )
                self.state = ProcessingState.SUCCEEDED
        except Exception:
            self.state = ProcessingState.IDLE
            raise
        finally:
            self.is_processing = False

        self._audit(text, profile, response)
        return response

    def _audit(
        self,
        query: str,
        profile: Optional[ProfileSnapshot],
        response: AssistantResponse,
    ):
        if self.ledger is None:
            return
        try:
            self.ledger.record(query, self.router.resolve_mode(profile), response)
        except (OSError, LedgerError) as e:
            logger.error("Privacy ledger write failed: %s", e)
