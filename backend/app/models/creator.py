"""Creator identity attached to generation and registration requests."""

import re
from dataclasses import dataclass

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def is_valid_address(address: str | None) -> bool:
    return isinstance(address, str) and _ADDRESS_RE.fullmatch(address) is not None


@dataclass(frozen=True)
class Creator:
    """
    Wallet identity of a creator.

    Attributes:
        address: Lowercased 0x-prefixed EVM address
        anonymous: True only for the ANONYMOUS_CREATOR sentinel
    """

    address: str
    anonymous: bool = False

    @classmethod
    def from_address(cls, address: str) -> "Creator":
        return cls(address=address.strip().lower())


# Stands in for an unauthenticated registrant. Whether anonymous records
# remain allowed is controlled by ALLOW_ANONYMOUS_REGISTRATION.
ANONYMOUS_CREATOR = Creator(address=ZERO_ADDRESS, anonymous=True)
