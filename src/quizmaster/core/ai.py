"""Shared OpenAI client loading."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"


def load_client() -> Any:
    """Initialize an OpenAI client using environment-derived credentials."""
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    return OpenAI(api_key=api_key)
