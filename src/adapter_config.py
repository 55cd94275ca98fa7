# /src/adapter_config.py
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

DEFAULT_API_URL = "https://api.shasta.trongrid.io/wallet/triggerconstantcontract"
DEFAULT_OWNER_ADDRESS = "T9yD14Nj9j7xAB4dbGeiX9h8unkKHxuWwb"
DEFAULT_CONTRACT_ADDRESS = "TBSo1pthwZJkkXLwfNUC3wzKG2K7wt2Zvg"
DEFAULT_FUNCTION_SELECTOR = "confirmedTokensForUser(address)"

DEFAULT_TIMEOUT_MS = 3000
DEFAULT_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0


@dataclass
class Config:
    api_url: str = DEFAULT_API_URL
    owner_address: str = DEFAULT_OWNER_ADDRESS
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    function_selector: str = DEFAULT_FUNCTION_SELECTOR
    api_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")

def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw!r}")


def load_config() -> Config:
    """Load configuration from environment variables (after .env is applied)."""
    api_key = (os.getenv("TRON_PRO_API_KEY") or "").strip() or None

    retries = _env_int("REQUEST_RETRIES", DEFAULT_RETRIES)
    if retries < 1:
        raise ValueError("REQUEST_RETRIES must be at least 1.")

    headers: Dict[str, str] = {}
    if api_key:
        headers["TRON-PRO-API-KEY"] = api_key

    return Config(
        api_url=os.getenv("TRON_API_URL", DEFAULT_API_URL).strip(),
        owner_address=os.getenv("OWNER_ADDRESS", DEFAULT_OWNER_ADDRESS).strip(),
        contract_address=os.getenv("CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS).strip(),
        function_selector=os.getenv("FUNCTION_SELECTOR", DEFAULT_FUNCTION_SELECTOR).strip(),
        api_key=api_key,
        timeout_ms=_env_int("TIMEOUT", DEFAULT_TIMEOUT_MS),
        retries=retries,
        retry_delay=_env_float("REQUEST_RETRY_DELAY", DEFAULT_RETRY_DELAY),
        headers=headers,
    )
