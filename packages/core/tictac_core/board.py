"""In-memory 3x3 board mirrored from the controller's snapshots."""

from __future__ import annotations

from enum import Enum

from tictac_link.protocol import BOARD_SIZE, SNAPSHOT_LENGTH


class Cell(str, Enum):
    EMPTY = " "
    X = "X"
    O = "O"

    @classmethod
    def from_char(cls, char: str) -> "Cell":
        if char == "X":
            return cls.X
        if char == "O":
            return cls.O
        return cls.EMPTY


class Board:
    """The grid is only written by reconcile() or reset(), never by a local move."""

    def __init__(self) -> None:
        self._grid: list[list[Cell]] = [[Cell.EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]

    def reconcile(self, snapshot: str) -> None:
        if len(snapshot) != SNAPSHOT_LENGTH:
            raise ValueError(f"Snapshot must be {SNAPSHOT_LENGTH} characters, got {len(snapshot)}")
        for k, char in enumerate(snapshot):
            self._grid[k // BOARD_SIZE][k % BOARD_SIZE] = Cell.from_char(char)

    def reset(self) -> None:
        for row in self._grid:
            for col in range(BOARD_SIZE):
                row[col] = Cell.EMPTY

    def cell(self, row: int, col: int) -> Cell:
        return self._grid[row][col]

    def rows(self) -> list[list[Cell]]:
        return [list(row) for row in self._grid]

    def snapshot(self) -> str:
        return "".join(cell.value for row in self._grid for cell in row)

    def is_empty(self) -> bool:
        return all(cell is Cell.EMPTY for row in self._grid for cell in row)

    def render(self) -> str:
        lines = [" " + " | ".join(cell.value for cell in row) for row in self._grid]
        return "\n---+---+---\n".join(lines)

    def __str__(self) -> str:
        return self.render()
