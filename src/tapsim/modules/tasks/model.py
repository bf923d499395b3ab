"""
任务 / 积木数据模型

Task 持有一棵有序的积木树，积木分三种：
- tap: 在区域内随机点击一次（无区域时为空操作）
- loop: 按 iterations 次数重复执行子积木
- function: 顺序执行一次子积木
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Union

from ...core.constants import BlockType, DEFAULT_ITERATIONS, DEFAULT_TASK_NAME
from ...core.errors import InvalidBlockError
from ..geometry import Rect


def new_block_id() -> str:
    """生成积木ID（创建时分配，之后不再变化）"""
    return uuid.uuid4().hex[:12]


def normalize_iterations(value: Any) -> int:
    """非正数、缺失或无法解析的次数一律按 1 处理"""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return DEFAULT_ITERATIONS
    return n if n >= 1 else DEFAULT_ITERATIONS


@dataclass
class TapBlock:
    """区域点击积木"""
    kind: ClassVar[BlockType] = BlockType.TAP

    id: str = field(default_factory=new_block_id)
    region: Optional[Rect] = None

    @property
    def configured(self) -> bool:
        return self.region is not None

    @property
    def children(self) -> List["Block"]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "region": self.region.to_dict() if self.region else None,
        }


@dataclass
class LoopBlock:
    """循环积木"""
    kind: ClassVar[BlockType] = BlockType.LOOP

    id: str = field(default_factory=new_block_id)
    iterations: Optional[int] = DEFAULT_ITERATIONS
    blocks: List["Block"] = field(default_factory=list)

    @property
    def effective_iterations(self) -> int:
        return normalize_iterations(self.iterations)

    @property
    def children(self) -> List["Block"]:
        return self.blocks

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "iterations": self.iterations,
            "blocks": [b.to_dict() for b in self.blocks],
        }


@dataclass
class FunctionBlock:
    """函数积木：子积木作为一个顺序组内联执行一次"""
    kind: ClassVar[BlockType] = BlockType.FUNCTION

    id: str = field(default_factory=new_block_id)
    blocks: List["Block"] = field(default_factory=list)

    @property
    def children(self) -> List["Block"]:
        return self.blocks

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "blocks": [b.to_dict() for b in self.blocks],
        }


Block = Union[TapBlock, LoopBlock, FunctionBlock]

BLOCK_TYPES = {
    BlockType.TAP: TapBlock,
    BlockType.LOOP: LoopBlock,
    BlockType.FUNCTION: FunctionBlock,
}


def parse_kind(value: Any) -> BlockType:
    try:
        return BlockType(value)
    except ValueError:
        raise InvalidBlockError(f"未知的积木类型: {value!r}") from None


def block_from_dict(data: Dict[str, Any]) -> Block:
    """从持久化结构恢复积木；已保存的 id 原样保留"""
    if not isinstance(data, dict):
        raise InvalidBlockError(f"积木数据格式错误: {data!r}")
    kind = parse_kind(data.get("type"))
    block_id = data.get("id") or new_block_id()
    if kind == BlockType.TAP:
        return TapBlock(id=block_id, region=Rect.from_dict(data.get("region")))
    children = [block_from_dict(child) for child in data.get("blocks") or []]
    if kind == BlockType.LOOP:
        return LoopBlock(id=block_id, iterations=data.get("iterations"), blocks=children)
    return FunctionBlock(id=block_id, blocks=children)


def make_block(kind: Union[str, BlockType], **kwargs) -> Block:
    """按类型创建新积木"""
    return BLOCK_TYPES[parse_kind(kind)](**kwargs)


def _now_iso() -> str:
    return datetime.utcnow().isoformat()


@dataclass
class Task:
    """任务：有序积木序列，顺序即执行顺序"""
    id: int
    name: str = DEFAULT_TASK_NAME
    blocks: List[Block] = field(default_factory=list)
    created: str = field(default_factory=_now_iso)

    def iter_blocks(self) -> Iterator[Block]:
        """深度优先（先序）遍历所有积木"""
        stack: List[Block] = list(reversed(self.blocks))
        while stack:
            block = stack.pop()
            yield block
            stack.extend(reversed(block.children))

    def find_block(self, block_id: str) -> Optional[Block]:
        for block in self.iter_blocks():
            if block.id == block_id:
                return block
        return None

    def block_ids(self) -> set:
        return {b.id for b in self.iter_blocks()}

    def add_block(
        self,
        kind: Union[str, BlockType],
        parent_id: Optional[str] = None,
        **kwargs,
    ) -> Block:
        """创建积木并追加到父积木（或任务顶层）的子序列末尾"""
        if parent_id is None:
            siblings = self.blocks
        else:
            parent = self.find_block(parent_id)
            if parent is None:
                raise InvalidBlockError(f"父积木不存在: {parent_id}")
            if isinstance(parent, TapBlock):
                raise InvalidBlockError("点击积木不能包含子积木")
            siblings = parent.blocks

        block = make_block(kind, **kwargs)
        taken = self.block_ids()
        while block.id in taken:
            block.id = new_block_id()
        siblings.append(block)
        return block

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "blocks": [b.to_dict() for b in self.blocks],
            "created": self.created,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        if not isinstance(data, dict):
            raise InvalidBlockError(f"任务数据格式错误: {data!r}")
        return cls(
            id=data["id"],
            name=data.get("name", DEFAULT_TASK_NAME),
            blocks=[block_from_dict(b) for b in data.get("blocks") or []],
            created=data.get("created") or _now_iso(),
        )


__all__ = [
    "Block",
    "TapBlock",
    "LoopBlock",
    "FunctionBlock",
    "Task",
    "block_from_dict",
    "make_block",
    "new_block_id",
    "normalize_iterations",
    "parse_kind",
]
