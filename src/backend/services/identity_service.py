"""
Participant identity resolution.

Turns the raw client fingerprint and source address of a submission into
the two keys the admission rules work on.
"""

from dataclasses import dataclass

from core.security import hash_network_address


@dataclass(frozen=True)
class ParticipantIdentity:
    """Identifiers of one submission.

    fingerprint: opaque per-device key supplied by the client, passed through unmodified
    network_hash: salted SHA-256 of the source address (the address itself is dropped)
    """

    fingerprint: str
    network_hash: str


def resolve_identity(
    fingerprint: str,
    network_address: str,
    salt: str | None = None,
) -> ParticipantIdentity:
    """
    Derive the participant identity for a submission.

    The fingerprint is untrusted client input; deriving a stable value is
    the client's job. Empty input is rejected by the admission controller,
    not here.
    """
    return ParticipantIdentity(
        fingerprint=fingerprint,
        network_hash=hash_network_address(network_address, salt),
    )
