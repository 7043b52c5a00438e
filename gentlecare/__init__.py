"""
GentleCare - Hybrid Care Companion

Answers a care recipient's questions either on the device or in the
cloud, and never sends passwords, card or bank details off the device
in hybrid mode.

  Router        - on_device / cloud / hybrid decision
  On-device     - local answers from the profile
  Cloud         - remote language model (OpenAI-compatible or Anthropic)
  Orchestrator  - dispatch + on-device fallback

Supporting:
  Ledger  - signed privacy log of where each answer came from
  REPL    - terminal chat (gentlecare-chat)
"""

__version__ = "0.3.0"
