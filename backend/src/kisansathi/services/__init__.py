"""
Services — couche métier Kisan Sathi.

Structure :
  - llm_clients.py : client de la passerelle IA (SDK OpenAI)
  - prompts.py     : prompts plan / radio
  - generation.py  : génération du plan et des segments radio
"""

from .llm_clients import get_sdk_client, complete
from .generation import generate_plan_text, generate_radio_segments

__all__ = [
    "get_sdk_client",
    "complete",
    "generate_plan_text",
    "generate_radio_segments",
]
