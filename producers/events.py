import json
from dataclasses import asdict, dataclass

U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class EntryEvent:
    """One ``{slot, idx, is_full_entry}`` notification from the validator plugin.

    Shared by the producer and the consumer so both reject the same payloads.
    """

    slot: int
    idx: int
    is_full_entry: bool

    @classmethod
    def from_dict(cls, data: dict) -> "EntryEvent":
        slot = data["slot"]
        idx = data["idx"]
        full = data.get("is_full_entry", True)
        for name, val in (("slot", slot), ("idx", idx)):
            if isinstance(val, bool) or not isinstance(val, int) or not 0 <= val <= U64_MAX:
                raise ValueError(f"{name} must be an unsigned 64-bit integer, got {val!r}")
        if not isinstance(full, bool) and full not in (0, 1):
            raise ValueError(f"is_full_entry must be a boolean, got {full!r}")
        return cls(slot=slot, idx=idx, is_full_entry=bool(full))

    def to_json(self) -> bytes:
        return json.dumps(asdict(self), separators=(",", ":")).encode("utf-8")

    def key(self) -> bytes:
        return self.slot.to_bytes(8, "big")
