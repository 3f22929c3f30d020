from typing import Any, Dict, Iterable, List, Optional

from Crypto.Hash import keccak

from .errors import DecodeWarning

TOTAL = "Total"
UNKNOWN = "Unknown"
RESERVED_NAMES = (TOTAL, UNKNOWN)


def topic_id(signature: str) -> str:
    """Return the 0x-prefixed keccak-256 of an event signature (its topic0)."""
    hasher = keccak.new(digest_bits=256)
    hasher.update(signature.encode("utf-8"))
    return "0x" + hasher.hexdigest()


def display_name(signature: str) -> str:
    return signature.split("(", 1)[0]


def record_topic0(record: Any) -> Optional[str]:
    """First topic of a log record, or None when the record is unclassifiable."""
    if not isinstance(record, dict):
        return None
    topics = record.get("topics")
    if not isinstance(topics, (list, tuple)) or not topics:
        return None
    first = topics[0]
    if not isinstance(first, str) or not first:
        return None
    return first.lower()


class SignatureIndex:
    """
    Maps event signatures to topic ids and topic ids back to display names.

    Signatures are used as given; canonicalization is left to the indexing
    service.
    """

    def __init__(self, signatures: Iterable[str]) -> None:
        ordered: List[str] = []
        seen = set()
        for signature in signatures:
            if not isinstance(signature, str):
                raise ValueError("event signatures must be strings.")
            if signature in seen:
                raise ValueError(f"Duplicate event signature '{signature}'.")
            if display_name(signature) in RESERVED_NAMES:
                raise ValueError(
                    f"Event signature '{signature}' uses the reserved counter name "
                    f"'{display_name(signature)}'."
                )
            seen.add(signature)
            ordered.append(signature)
        if not ordered:
            raise ValueError("At least one event signature is required.")

        self.signatures = ordered
        self.topic_ids: List[str] = [topic_id(sig) for sig in ordered]
        self._names: Dict[str, str] = {}
        self._signature_by_id: Dict[str, str] = {}
        for sig, tid in zip(ordered, self.topic_ids):
            self._names[tid] = display_name(sig)
            self._signature_by_id[tid] = sig

    @property
    def names(self) -> List[str]:
        out: List[str] = []
        for sig in self.signatures:
            name = display_name(sig)
            if name not in out:
                out.append(name)
        return out

    @property
    def id_to_name(self) -> Dict[str, str]:
        return dict(self._names)

    def name_for(self, tid: Optional[str]) -> Optional[str]:
        if not tid:
            return None
        return self._names.get(tid.lower())

    def decode(self, record: Any) -> Dict[str, str]:
        tid = record_topic0(record)
        if tid is None:
            raise DecodeWarning("record carries no topic0.")
        name = self._names.get(tid)
        if name is None:
            raise DecodeWarning(f"topic0 {tid} does not match any configured signature.")
        return {"event": name, "signature": self._signature_by_id[tid], "topic0": tid}

    def as_list(self) -> List[Dict[str, str]]:
        return [
            {"signature": sig, "name": display_name(sig), "topic0": tid}
            for sig, tid in zip(self.signatures, self.topic_ids)
        ]
