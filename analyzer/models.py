"""
Selectable models and their per-million-token pricing.
"""
from typing import Dict, List

from analyzer.config import DEFAULT_MODEL_ID

MODELS: List[Dict[str, str]] = [
    {"id": "gpt-4o", "label": "GPT 4o", "description": "Latest and most capable GPT-4o model"},
    {"id": "gpt-4o-mini", "label": "GPT 4o mini", "description": "Small model for fast, lightweight tasks"},
    {"id": "chatgpt-4o-latest", "label": "ChatGPT 4o Latest", "description": "Dynamic model - always points to latest GPT-4o"},
    {"id": "gpt-4-turbo", "label": "GPT 4 Turbo", "description": "Most capable GPT-4 model with 128k context"},
    {"id": "gpt-4", "label": "GPT 4", "description": "Standard GPT-4 model for advanced tasks"},
    {"id": "gpt-3.5-turbo", "label": "GPT 3.5 Turbo", "description": "Fast and efficient for most conversations"},
]

# USD per 1M tokens. Models not listed are billed as gpt-4o-mini.
MODEL_PRICING = {
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
}
FALLBACK_PRICING_MODEL = "gpt-4o-mini"


def get_model_ids() -> List[str]:
    return [m["id"] for m in MODELS]


def get_default_model() -> str:
    return DEFAULT_MODEL_ID if DEFAULT_MODEL_ID in get_model_ids() else FALLBACK_PRICING_MODEL


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    pricing = MODEL_PRICING.get(model, MODEL_PRICING[FALLBACK_PRICING_MODEL])
    return (input_tokens / 1_000_000) * pricing["input"] + (output_tokens / 1_000_000) * pricing["output"]
