"""Turn activation outcomes into labelled content blocks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .activation import ActivationResult

__all__ = ["BlockKind", "ContentBlock", "TrapContent", "format_bonus", "render_activation"]

BlockKind = Literal["flavor", "roll-summary", "verdict", "damage", "effect"]


@dataclass(frozen=True)
class ContentBlock:
    kind: BlockKind
    label: str
    text: str


@dataclass(frozen=True)
class TrapContent:
    """Ordered blocks describing one activation."""

    blocks: Tuple[ContentBlock, ...]

    def kinds(self) -> Tuple[BlockKind, ...]:
        return tuple(block.kind for block in self.blocks)

    def find(self, kind: BlockKind) -> Sequence[ContentBlock]:
        return tuple(block for block in self.blocks if block.kind == kind)


def format_bonus(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def render_activation(result: "ActivationResult") -> TrapContent:
    blocks: list[ContentBlock] = [ContentBlock("flavor", "", result.message)]
    if not result.verdict_computed or result.roll is None or result.attack is None:
        return TrapContent(tuple(blocks))

    blocks.append(
        ContentBlock(
            "roll-summary",
            "Attack roll",
            f"{result.roll.total} ({result.roll.faces()}) {format_bonus(result.attack)} "
            f"vs {result.defense} {result.defense_value}",
        )
    )

    if result.trap_hit:
        blocks.append(ContentBlock("verdict", "HIT!", ""))
        if result.damage:
            blocks.append(ContentBlock("damage", "Damage", result.damage))
        else:
            name = result.character.name if result.character else result.victim.name
            blocks.append(ContentBlock("effect", "", f"{name} falls prey to the trap's effects!"))
    else:
        blocks.append(ContentBlock("verdict", "MISS!", ""))
        if result.damage and result.miss_half:
            blocks.append(ContentBlock("damage", "Half damage", f"floor(({result.damage})/2)"))
    return TrapContent(tuple(blocks))
