"""
GentleCare terminal output.

ANSI formatting for the chat REPL. Green means the answer stayed on the
device, yellow means it went to the cloud.
"""

from datetime import datetime
from typing import Optional

from .assistant.schemas import AssistantResponse, Provider, RoutingDecision

# ANSI color codes
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
GRAY = "\033[90m"
RESET = "\033[0m"
BOLD = "\033[1m"

PROVIDER_COLORS = {
    Provider.ON_DEVICE: GREEN,
    Provider.CLOUD: YELLOW,
    Provider.HYBRID: YELLOW,
}


def timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def format_banner(companion: str, mode: str, backend: str, model: str) -> str:
    return f"""
{BOLD}{CYAN} ┌──────────────────────────────────────────┐
 │   {companion:<39}│
 │   Asistente de cuidado                   │
 │                                          │
 │   /route   — ultima decision de ruta     │
 │   /status  — estado del asistente        │
 │   /mode    — on_device | cloud | hybrid  │
 │   /offline /online — simular red         │
 │   /history — conversacion                │
 │   /verify  — verificar registro          │
 │   /clear   — borrar historial            │
 │   /quit    — salir                       │
 └──────────────────────────────────────────┘{RESET}
  Modo: {mode}   Nube: {backend} / {model}
"""


def format_reply(name: str, response: AssistantResponse) -> str:
    color = PROVIDER_COLORS[response.provider]
    lock = "privado" if response.was_privacy_preserving else "nube"
    meta = (
        f"{GRAY}  [{response.processing_time * 1000:.0f}ms | "
        f"{color}{response.provider.value}{GRAY} | {lock} | "
        f"{response.decision.reason.value}"
    )
    if response.fell_back:
        meta += f" | {RED}respaldo local{GRAY}"
    return f"\n{color}{name}>{RESET} {response.content}\n{meta}]{RESET}"


def format_route(decision: Optional[RoutingDecision]) -> str:
    if decision is None:
        return "  No route recorded yet."
    lines = [
        f"  Provider: {decision.provider.value}",
        f"  Reason:   {decision.reason.value}",
    ]
    if decision.intent is not None:
        lines.append(f"  Intent:   {decision.intent.value}")
    return "\n".join(lines)


def log_info(message: str):
    print(f"{GRAY}[{timestamp()}]{RESET} {message}")


def log_warning(message: str):
    print(f"{GRAY}[{timestamp()}]{RESET} {YELLOW}WARNING:{RESET} {message}")


def log_error(message: str):
    print(f"{GRAY}[{timestamp()}]{RESET} {RED}ERROR:{RESET} {message}")
