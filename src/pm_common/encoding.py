"""0x-hex encoding for opaque byte fields (identifiers, ancillary data)."""


def to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def from_hex(value: str) -> bytes:
    """Decode 0x-prefixed or bare hex. Raises ValueError on malformed input."""
    return bytes.fromhex(value[2:] if value.startswith(("0x", "0X")) else value)
