from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import UnknownPreset

DEFAULT_PRESET = "uniswap-v3"


@dataclass(frozen=True)
class EventPreset:
    name: str
    description: str
    signatures: Tuple[str, ...]


EVENT_PRESETS: Dict[str, EventPreset] = {
    "uniswap-v3": EventPreset(
        name="Uniswap V3",
        description="Uniswap V3 core events",
        signatures=(
            "PoolCreated(address,address,uint24,int24,address)",
            "Burn(address,int24,int24,uint128,uint256,uint256)",
            "Initialize(uint160,int24)",
            "Mint(address,address,int24,int24,uint128,uint256,uint256)",
            "Swap(address,address,int256,int256,uint160,uint128,int24)",
        ),
    ),
    "erc20": EventPreset(
        name="ERC-20",
        description="Standard ERC-20 token events",
        signatures=(
            "Transfer(address,address,uint256)",
            "Approval(address,address,uint256)",
        ),
    ),
    "erc721": EventPreset(
        name="ERC-721",
        description="Standard ERC-721 NFT events",
        signatures=(
            "Transfer(address,address,uint256)",
            "Approval(address,address,uint256)",
            "ApprovalForAll(address,address,bool)",
        ),
    ),
}


def has_preset(name: str) -> bool:
    return name in EVENT_PRESETS


def get_event_signatures(name: str) -> List[str]:
    preset = EVENT_PRESETS.get(name)
    if preset is None:
        raise UnknownPreset(name, EVENT_PRESETS.keys())
    return list(preset.signatures)


def list_presets() -> List[Dict[str, str]]:
    return [
        {"id": key, "name": preset.name, "description": preset.description}
        for key, preset in EVENT_PRESETS.items()
    ]


def select_signatures(preset: Optional[str], events: Optional[Sequence[str]]) -> List[str]:
    """Explicit event signatures win over a preset; the preset defaults to uniswap-v3."""
    if events:
        return [str(event) for event in events]
    return get_event_signatures(preset or DEFAULT_PRESET)
