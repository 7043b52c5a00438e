"""
Capability interfaces the assistant core delegates to.

  OnDeviceCapability      - local answers, context building, personalization.
                            Never fails.
  CloudCapability         - remote language model. Returns a CloudResult
                            instead of raising.
  ConnectivityCapability  - is the network reachable right now.

The router and orchestrator only ever see these protocols. Concrete
implementations live in on_device.py, cloud.py and connectivity.py.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union, runtime_checkable

from .schemas import ProfileSnapshot


class FailureKind(str, Enum):
    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    PROVIDER = "provider"


@dataclass(frozen=True)
class CloudSuccess:
    text: str


@dataclass(frozen=True)
class CloudFailure:
    kind: FailureKind
    message: str


CloudResult = Union[CloudSuccess, CloudFailure]


@runtime_checkable
class OnDeviceCapability(Protocol):

    async def process(self, query: str, profile: Optional[ProfileSnapshot]) -> str:
        ...

    async def build_context(self, profile: Optional[ProfileSnapshot]) -> str:
        ...

    async def personalize(self, text: str, profile: Optional[ProfileSnapshot]) -> str:
        ...


@runtime_checkable
class CloudCapability(Protocol):

    async def chat(
        self,
        query: str,
        context: Optional[str],
        profile: Optional[ProfileSnapshot],
    ) -> CloudResult:
        ...


@runtime_checkable
class ConnectivityCapability(Protocol):

    def is_connected(self) -> bool:
        ...
