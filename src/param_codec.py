# /src/param_codec.py
import logging
import re
from typing import Any, Dict, List, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from web3 import Web3

logger = logging.getLogger(__name__)

# =========================
# TRON address prefix
# =========================
ADDRESS_PREFIX = "41"
ADDRESS_PREFIX_RE = re.compile(r"^41")
HEX_PREFIX_RE = re.compile(r"^0x")
INT_TYPE_RE = re.compile(r"^u?int(\d+)?$")
INT_ARRAY_TYPE_RE = re.compile(r"^u?int(\d+)?\[\d*\]$")

SLOT_HEX_CHARS = 64
METHOD_HASH_HEX_CHARS = 8


class ValidationError(Exception):
    """Raised when an encoded payload cannot be decoded."""
    pass


class EncodingError(Exception):
    """Raised when typed values cannot be ABI encoded."""
    pass


# =========================
# Helpers
# =========================
def _strip_hex_prefix(data: str) -> str:
    return HEX_PREFIX_RE.sub("", data)

def to_eth_address(address: str) -> str:
    """Swap a leading TRON '41' for the '0x' the ABI coder expects."""
    return ADDRESS_PREFIX_RE.sub("0x", str(address))

def to_tron_address(address: str) -> str:
    """'0x'-prefixed hex address -> lower-case TRON hex address."""
    return ADDRESS_PREFIX + address[2:].lower()

def _coerce_int(value: Any) -> Any:
    # numeric strings are accepted the same way ethers' BigNumber accepts them
    if isinstance(value, str):
        raw = value.strip()
        if raw.lower().startswith(("0x", "-0x")):
            return int(raw, 16)
        return int(raw, 10)
    return value

def _prepare_value(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return to_eth_address(value)
    if abi_type == "address[]":
        return [to_eth_address(v) for v in value]
    if INT_TYPE_RE.match(abi_type):
        return _coerce_int(value)
    if INT_ARRAY_TYPE_RE.match(abi_type):
        return [_coerce_int(v) for v in value]
    return value


# =========================
# Codec
# =========================
def encode_params(inputs: Sequence[Dict[str, Any]]) -> str:
    """
    ABI-encode an ordered list of {"type": ..., "value": ...} pairs.

    Returns the hex payload without a '0x' prefix, or '' when there is
    nothing to encode. Any failure raises EncodingError.
    """
    if len(inputs) == 0:
        return ""

    types: List[str] = []
    values: List[Any] = []
    try:
        for item in inputs:
            abi_type = item["type"]
            types.append(abi_type)
            values.append(_prepare_value(abi_type, item["value"]))
        encoded = abi_encode(types, values)
    except Exception as e:
        logger.error("Failed to encode parameters %s: %s", types, e)
        raise EncodingError(f"Cannot encode {types}: {e}") from e

    return _strip_hex_prefix(Web3.to_hex(encoded))

def decode_params(types: Sequence[str], output: str, ignore_method_hash: bool = False) -> List[Any]:
    """
    Decode a constant-call result according to `types`.

    With ignore_method_hash, a leading 4-byte method selector is dropped when
    the payload is exactly 8 hex chars longer than a whole number of slots.
    Addresses come back in TRON form ('41' + lower-case hex).
    """
    data = _strip_hex_prefix(output)

    if ignore_method_hash and len(data) % SLOT_HEX_CHARS == METHOD_HASH_HEX_CHARS:
        data = data[METHOD_HASH_HEX_CHARS:]

    if len(data) % SLOT_HEX_CHARS:
        raise ValidationError("The encoded string is not valid. Its length must be a multiple of 64.")

    try:
        decoded = abi_decode(list(types), Web3.to_bytes(hexstr=data))
    except Exception as e:
        raise ValidationError(f"Cannot decode {list(types)} from payload: {e}") from e

    values: List[Any] = []
    for index, arg in enumerate(decoded):
        if types[index] == "address":
            arg = to_tron_address(arg)
        values.append(arg)
    return values
