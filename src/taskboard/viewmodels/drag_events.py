# Rev 0.1.0
"""Discrete drag events consumed by BoardViewModel.handle().

A view translates its toolkit's gesture callbacks into these; the target of
DragOver/DragEnd is whatever drop zone the pointer is over (a stage value,
another card id, or None), and the view model decides if it is a stage.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class DragStart:
    task_id: str


@dataclass(frozen=True)
class DragOver:
    target: Optional[Any] = None


@dataclass(frozen=True)
class DragEnd:
    task_id: str
    target: Optional[Any] = None


DragEvent = Union[DragStart, DragOver, DragEnd]
