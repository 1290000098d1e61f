import binascii
import decimal
import re
from typing import Generic, TypeVar

from Crypto.Hash import keccak  # type: ignore

from riggedballot.exceptions import ArgumentException, InvalidAddress

_T = TypeVar("_T")


class OrderedSet(Generic[_T], dict[_T, None]):
    """
    a minimal "ordered set" class. this is needed in some places
    because, while dict guarantees you can recover insertion order
    vanilla sets do not.
    no attempt is made to fully implement the set API, will add
    functionality as needed.
    """

    def __init__(self, iterable=None):
        super().__init__()
        if iterable is not None:
            for item in iterable:
                self.add(item)

    def __repr__(self):
        keys = ", ".join(repr(k) for k in self.keys())
        return f"{{{keys}}}"

    def get(self, *args, **kwargs):
        raise RuntimeError("can't call get() on OrderedSet!")

    def first(self):
        return next(iter(self))

    def add(self, item: _T) -> None:
        self[item] = None

    def remove(self, item: _T) -> None:
        del self[item]


def keccak256(x: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=x).digest()


# converts a signature like BribeTaken(address,uint256) to its 32 byte topic
def event_id(event_sig: str) -> bytes:
    return keccak256(bytes(event_sig, "utf-8"))


# Converts bytes to an integer
def bytes_to_int(bytez):
    return int.from_bytes(bytez, "big")


# Sizes of different data types. Used to clamp values.
class SizeLimits:
    MAX_UINT256 = 2**256 - 1


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_checksum_encoded(addr):
    return addr == checksum_encode(addr)


# Encodes an address using ethereum's checksum scheme
def checksum_encode(addr):  # Expects an input of the form 0x<40 hex chars>
    assert addr[:2] == "0x" and len(addr) == 42, addr
    o = ""
    v = bytes_to_int(keccak256(addr[2:].lower().encode("utf-8")))
    for i, c in enumerate(addr[2:]):
        if c in "0123456789":
            o += c
        else:
            o += c.upper() if (v & (2 ** (255 - 4 * i))) else c.lower()
    return "0x" + o


def to_address(value) -> str:
    """
    Normalize `value` (a hex string or 20 raw bytes) to a checksummed address.

    Mixed-case strings must already carry a valid checksum.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise InvalidAddress(f"expected 20 bytes, got {len(value)}")
        value = "0x" + binascii.hexlify(value).decode("ascii")
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise InvalidAddress(f"not an address: {value!r}")

    body = value[2:]
    if body != body.lower() and body != body.upper() and not is_checksum_encoded(value):
        raise InvalidAddress(f"bad address checksum: {value}")
    return checksum_encode(value.lower())


def address_from_bytes(bytez: bytes) -> str:
    # the last 20 bytes, like contract and account addresses on the EVM
    return to_address(bytez[-20:])


UNITS = {"wei": 1, "kwei": 10**3, "mwei": 10**6, "gwei": 10**9, "szabo": 10**12, "ether": 10**18}


def to_wei(value, unit: str = "ether") -> int:
    """
    Convert `value` denominated in `unit` to an integer amount of wei.

    ex. to_wei("0.01") -> 10000000000000000
    """
    if unit not in UNITS:
        raise ArgumentException(f"unknown unit: {unit}", hint=f"use one of {list(UNITS)}")
    if isinstance(value, bool) or not isinstance(value, (int, str, decimal.Decimal)):
        # floats are rejected, they cannot hold 0.01 exactly
        raise ArgumentException(f"cannot convert {type(value).__name__} to wei")

    with decimal.localcontext() as ctx:
        ctx.prec = 78
        try:
            amount = decimal.Decimal(value) * UNITS[unit]
        except decimal.InvalidOperation:
            raise ArgumentException(f"not a number: {value!r}") from None
        if not amount.is_finite() or amount != amount.to_integral_value() or amount < 0:
            raise ArgumentException(f"{value} {unit} is not a whole, non-negative wei amount")
    return int(amount)


def from_wei(amount: int, unit: str = "ether") -> decimal.Decimal:
    if unit not in UNITS:
        raise ArgumentException(f"unknown unit: {unit}", hint=f"use one of {list(UNITS)}")
    with decimal.localcontext() as ctx:
        ctx.prec = 78
        return decimal.Decimal(amount) / UNITS[unit]


def parse_value(value) -> int:
    """
    Parse a value as written in a scenario file: a wei integer or a
    string like "0.006 ether".
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return to_wei(value, "wei")
    if isinstance(value, str):
        parts = value.split()
        if len(parts) == 1:
            return to_wei(parts[0], "wei")
        if len(parts) == 2:
            return to_wei(parts[0], parts[1])
    raise ArgumentException(f"cannot parse value: {value!r}")


def string_to_bytes32(value) -> bytes:
    """
    Zero-pad a proposal name to 32 bytes.

    Strings are UTF-8 encoded and must leave room for a null terminator,
    the way `formatBytes32String` lays them out.
    """
    if isinstance(value, str):
        bytez = value.encode("utf-8")
        if len(bytez) > 31:
            raise ArgumentException(f"bytes32 string must be less than 32 bytes: {value!r}")
    elif isinstance(value, (bytes, bytearray)):
        bytez = bytes(value)
        if len(bytez) > 32:
            raise ArgumentException(f"bytes32 value is {len(bytez)} bytes long")
    else:
        raise ArgumentException(f"cannot convert {type(value).__name__} to bytes32")
    return bytez.ljust(32, b"\x00")


def bytes32_to_string(bytez: bytes) -> str:
    return bytez.rstrip(b"\x00").decode("utf-8")
