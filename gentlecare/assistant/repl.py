"""
Interactive chat REPL for the GentleCare assistant.

The care recipient (or a caregiver testing the setup) talks to the
companion. Under the hood: Router → on-device / cloud / hybrid → fallback.

Commands:
  /route    - how the last query was routed
  /status   - mode, network, backend, ledger summary
  /mode M   - switch to on_device, cloud or hybrid
  /offline  - pretend the network is down
  /online   - back to the real connectivity check
  /history  - show the conversation so far
  /verify   - verify the privacy ledger chain
  /clear    - clear conversation history
  /quit     - exit
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import Optional

from ..config import AssistantConfig, load_config, load_profile, parse_mode
from ..errors import ConfigError, LedgerError
from ..output import (
    format_banner,
    format_reply,
    format_route,
    log_error,
    log_info,
    log_warning,
)
from .capabilities import ConnectivityCapability
from .connectivity import StaticConnectivity
from .conversation import ChatMessage, Conversation
from .orchestrator import Orchestrator
from .schemas import ProfileSnapshot, Query


logger = logging.getLogger(__name__)

QUIT_COMMANDS = ("/quit", "/exit", "/q")


@dataclass
class ChatSession:
    """Everything the REPL needs between turns."""
    orchestrator: Orchestrator
    config: AssistantConfig
    profile: Optional[ProfileSnapshot] = None
    conversation: Conversation = field(default_factory=Conversation)
    probe: Optional[ConnectivityCapability] = None

    def __post_init__(self):
        if self.probe is None:
            self.probe = self.orchestrator.router.connectivity

    @property
    def name(self) -> str:
        return self.config.companion_name

    async def ask(self, text: str) -> str:
        query = Query(text=text)
        try:
            response = await self.orchestrator.process(query, self.profile)
        except Exception as e:
            logger.exception("Query failed")
            self.conversation.add(ChatMessage.user_message(text))
            msg = self.conversation.add(ChatMessage.from_error(str(e)))
            return f"\n{self.name}> {msg.content}"
        self.conversation.record_turn(query, response)
        return format_reply(self.name, response)


def build_config(args: argparse.Namespace) -> AssistantConfig:
    """Load gentlecare.yaml and apply CLI overrides on top."""
    config = load_config(getattr(args, "config", None))

    if getattr(args, "mode", None):
        config.routing.default_mode = parse_mode(args.mode)
    if getattr(args, "backend", None):
        config.cloud.backend = args.backend
    if getattr(args, "model", None):
        config.cloud.model = args.model
    if getattr(args, "base_url", None):
        config.cloud.base_url = args.base_url
    if getattr(args, "api_key", None):
        config.cloud.api_key = args.api_key
    if getattr(args, "offline", False):
        config.connectivity.offline = True
    if getattr(args, "no_audit", False):
        config.audit.enabled = False
    return config


def _status(session: ChatSession) -> str:
    orch = session.orchestrator
    router = orch.router
    lines = [
        f"  Companion:  {session.name}",
        f"  Mode:       {router.resolve_mode(session.profile).value}",
        f"  Network:    {'online' if router.connectivity.is_connected() else 'offline'}",
        f"  Cloud:      {session.config.cloud.backend} / {session.config.cloud.model}",
        f"  Profile:    {session.profile.full_name if session.profile else 'none'}",
        f"  History:    {len(session.conversation)} messages",
    ]
    if orch.last_error:
        lines.append(f"  Last error: {orch.last_error}")
    if orch.ledger is not None:
        s = orch.ledger.summary()
        lines.append(
            f"  Ledger:     {s['records']} records | on device {s['on_device']} | "
            f"left device {s['left_device']} | fallbacks {s['fallbacks']}"
        )
    else:
        lines.append("  Ledger:     disabled")
    return "\n".join(lines)


def _set_mode(session: ChatSession, arg: str) -> str:
    try:
        mode = parse_mode(arg)
    except ConfigError as e:
        return f"  {e}"
    session.orchestrator.router.default_mode = mode
    if session.profile is not None and session.profile.preferred_ai_mode is not None:
        session.profile = session.profile.model_copy(update={"preferred_ai_mode": mode})
    return f"  Mode: {mode.value}"


def _history(session: ChatSession) -> str:
    if not len(session.conversation):
        return "  No messages yet."
    lines = []
    for msg in session.conversation.last(20):
        badge = f" [{msg.provider_badge}]" if msg.provider_badge else ""
        lines.append(f"  {msg.timestamp:%H:%M} {msg.role.value}{badge}: {msg.content}")
    return "\n".join(lines)


def _verify(session: ChatSession) -> str:
    ledger = session.orchestrator.ledger
    if ledger is None:
        return "  Privacy ledger disabled."
    try:
        result = ledger.verify_chain()
    except LedgerError as e:
        return f"  {e}"
    if result.valid:
        return f"  CHAIN VALID - {result.records_checked} records verified"
    return (
        f"  CHAIN BROKEN at record {result.broken_at}\n"
        f"  Error: {result.error}\n"
        f"  Records before break: {result.records_checked}"
    )


def handle_command(session: ChatSession, line: str) -> Optional[str]:
    """Run a slash command. Returns the text to print, or None to quit."""
    parts = line.split()
    cmd = parts[0].lower()
    arg = parts[1] if len(parts) > 1 else ""

    if cmd in QUIT_COMMANDS:
        return None
    if cmd == "/route":
        return format_route(session.orchestrator.last_decision)
    if cmd == "/status":
        return _status(session)
    if cmd == "/mode":
        if not arg:
            return "  Usage: /mode [on_device|cloud|hybrid]"
        return _set_mode(session, arg)
    if cmd == "/offline":
        session.orchestrator.router.connectivity = StaticConnectivity(False)
        return "  Network: offline (simulated)"
    if cmd == "/online":
        probe = session.probe
        if isinstance(probe, StaticConnectivity) and not probe.connected:
            probe = StaticConnectivity(True)
        session.orchestrator.router.connectivity = probe
        return "  Network: online"
    if cmd == "/history":
        return _history(session)
    if cmd == "/verify":
        return _verify(session)
    if cmd == "/clear":
        session.conversation.clear()
        return "  History cleared."
    if cmd == "/help":
        return __doc__
    return f"  Unknown command: {cmd}"


async def run_repl(session: ChatSession):
    """Run the interactive conversation loop. One query at a time."""
    config = session.config
    print(format_banner(
        session.name,
        session.orchestrator.router.resolve_mode(session.profile).value,
        config.cloud.backend,
        config.cloud.model,
    ))

    while True:
        try:
            line = (await asyncio.to_thread(input, "\033[36mtu>\033[0m ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\n")
            break

        if not line:
            continue

        if line.startswith("/"):
            out = handle_command(session, line)
            if out is None:
                break
            print(out)
            continue

        print(await session.ask(line))
        print()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="GentleCare - hybrid on-device / cloud care companion"
    )
    parser.add_argument("--config", help="Path to gentlecare.yaml")
    parser.add_argument("--profile", help="Path to a care-recipient profile YAML")
    parser.add_argument("--mode", choices=["on_device", "cloud", "hybrid"],
                        help="Default AI mode")
    parser.add_argument("--backend", choices=["openai", "anthropic"],
                        help="Cloud backend")
    parser.add_argument("--model", help="Cloud model name")
    parser.add_argument("--base-url", help="Base URL for an OpenAI-compatible API")
    parser.add_argument("--api-key", help="API key")
    parser.add_argument("--offline", action="store_true", help="Start with the network off")
    parser.add_argument("--no-audit", action="store_true", help="Disable the privacy ledger")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        config = build_config(args)
        profile = load_profile(args.profile) if args.profile else None
    except ConfigError as e:
        log_error(str(e))
        return 2

    if config.source:
        log_info(f"Config: {config.source}")
    if not config.cloud.resolved_api_key and not config.cloud.base_url:
        log_warning("No cloud API key set. Cloud answers will fall back to on-device.")

    session = ChatSession(
        orchestrator=Orchestrator.from_config(config),
        config=config,
        profile=profile,
    )
    asyncio.run(run_repl(session))
    return 0


if __name__ == "__main__":
    sys.exit(main())
