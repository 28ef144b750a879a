from __future__ import annotations

from typing import Callable, Optional

from .models import FocusState


class FocusNavigator:
    """
    Line cursor for a single reading view. Moves past either end and
    out-of-range jumps are ignored rather than raised; the line-change
    callback fires only when the line actually moves.
    """

    def __init__(
        self,
        total_lines: int,
        initial_line: int = 1,
        enabled: bool = False,
        on_line_change: Optional[Callable[[int], None]] = None,
    ):
        if total_lines < 1:
            raise ValueError(f"Focus navigator needs at least one line, got {total_lines}")
        self.total_lines = total_lines
        self.current_line = min(max(initial_line, 1), total_lines)
        self.enabled = enabled
        self.on_line_change = on_line_change

    @property
    def state(self) -> FocusState:
        return FocusState(current_line=self.current_line, enabled=self.enabled)

    def next(self) -> bool:
        if self.current_line >= self.total_lines:
            return False
        return self._move_to(self.current_line + 1)

    def previous(self) -> bool:
        if self.current_line <= 1:
            return False
        return self._move_to(self.current_line - 1)

    def jump_to(self, line: int) -> bool:
        if not 1 <= line <= self.total_lines:
            return False
        if line == self.current_line:
            return False
        return self._move_to(line)

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        return self.enabled

    def _move_to(self, line: int) -> bool:
        self.current_line = line
        if self.on_line_change:
            self.on_line_change(line)
        return True
