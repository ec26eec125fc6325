from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
_ENV_FILES = (REPO_ROOT / ".env.local", REPO_ROOT / ".env")
_ENV_LOADED = False

DEFAULT_DATA_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vRc4XwuY5BY6-23T6vTXr5zqpqOn6pZepIM4ygd4wadZGl9ilpuN6hZZIXskYHHzxgTcUAKdsSqe60Y"
    "/pub?gid=1642364281&single=true&output=csv"
)


def load_environment() -> None:
    """Load `.env` files once; variables already exported win."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    for candidate in _ENV_FILES:
        if candidate.exists():
            load_dotenv(candidate, override=False)
    _ENV_LOADED = True


def _get_env(*keys: str) -> Optional[str]:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def _float_from_env(value: Optional[str], default: float) -> float:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _int_from_env(value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    data_url: str
    fetch_timeout: int
    gemini_api_key: Optional[str]
    gemini_model: str
    gemini_base_url: str
    gemini_timeout: int
    sheets_per_tree: float
    water_liters_per_sheet: float
    co2_kg_per_sheet: float
    cost_per_sheet: float
    currency: str
    cors_origins: List[str]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings sourced from env variables."""
    load_environment()

    cors_raw = os.getenv("ECOPRINT_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    return Settings(
        data_url=_get_env("ECOPRINT_DATA_URL") or DEFAULT_DATA_URL,
        fetch_timeout=_int_from_env(os.getenv("ECOPRINT_FETCH_TIMEOUT"), 30),
        gemini_api_key=_get_env("GEMINI_API_KEY", "API_KEY"),
        gemini_model=_get_env("GEMINI_MODEL") or "gemini-2.5-flash",
        gemini_base_url=_get_env("GEMINI_BASE_URL") or "https://generativelanguage.googleapis.com/v1beta",
        gemini_timeout=_int_from_env(os.getenv("GEMINI_TIMEOUT"), 60),
        sheets_per_tree=_float_from_env(os.getenv("ECOPRINT_SHEETS_PER_TREE"), 8333.0),
        water_liters_per_sheet=_float_from_env(os.getenv("ECOPRINT_WATER_LITERS_PER_SHEET"), 0.015),
        co2_kg_per_sheet=_float_from_env(os.getenv("ECOPRINT_CO2_KG_PER_SHEET"), 0.005),
        cost_per_sheet=_float_from_env(os.getenv("ECOPRINT_COST_PER_SHEET"), 0.45),
        currency=_get_env("ECOPRINT_CURRENCY") or "THB",
        cors_origins=[o.strip() for o in cors_raw.split(",") if o.strip()],
    )
