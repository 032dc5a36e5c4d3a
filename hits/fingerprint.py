"""
Visitor fingerprints.

A fingerprint is a short hash of "user-agent|address|LANG". It is NOT a unique
key: with 10 hex characters two visitors can collide, in which case they share
one stored descriptor. That is accepted.
"""

import hashlib
from dataclasses import dataclass
from typing import NewType

Fingerprint = NewType("Fingerprint", str)

DEFAULT_WIDTH = 10
SEPARATOR = "|"


def make_hash(value: str, width: int = DEFAULT_WIDTH) -> Fingerprint:
    """
    SHA-256 of value, hex encoded, cut to `width` characters.
    """
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()
    if not 0 < width <= len(digest):
        raise ValueError(f"fingerprint width must be between 1 and {len(digest)}, got {width}")
    return Fingerprint(digest[:width])


def primary_language(accept_language: str | None) -> str:
    # "en-GB,en;q=0.9" -> "EN-GB"
    if not accept_language:
        return ""
    return accept_language.upper().split(",")[0].strip()


@dataclass(frozen=True)
class VisitorDescriptor:
    user_agent: str
    client_address: str
    primary_language: str

    @classmethod
    def from_headers(
        cls,
        user_agent: str | None,
        client_address: str | None,
        accept_language: str | None,
    ) -> "VisitorDescriptor":
        """
        Build a descriptor from raw request metadata. Missing values become "".
        """
        return cls(
            user_agent=user_agent or "",
            client_address=client_address or "",
            primary_language=primary_language(accept_language),
        )

    def canonical(self) -> str:
        return SEPARATOR.join([self.user_agent, self.client_address, self.primary_language])

    def fingerprint(self, width: int = DEFAULT_WIDTH) -> Fingerprint:
        return make_hash(self.canonical(), width)
