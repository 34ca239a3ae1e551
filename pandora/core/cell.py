"""
Cell for Project Pandora.

Every grid position holds exactly one Cell. A cell never leaves the grid;
death is the DEAD state, which carries zero energy, age and stagnation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class CellState(IntEnum):
    """Lifecycle state of a cell. Integer values index state arrays."""
    DEAD = 0
    ALIVE = 1
    MUTATED = 2
    WARRIOR = 3


@dataclass(frozen=True)
class CellView:
    """Read-only projection of a cell for renderers."""
    state: CellState
    age: int
    energy: int


class Cell:
    """
    One grid slot.

    Attributes:
        state: Current lifecycle state.
        age: Generations survived in the current state.
        energy: Resource driving speed, combat, reproduction and death.
        direction: Unit-length (or zero) momentum vector (dx, dy).
        attack_cooldown: Generations left before the cell may attack again.
        stagnant_cycles: Consecutive generations without relocating.
        has_moved: Set once the cell relocates in the current generation.
    """

    __slots__ = (
        "state", "age", "energy", "direction",
        "attack_cooldown", "stagnant_cycles", "has_moved",
    )

    def __init__(
        self,
        state: CellState = CellState.DEAD,
        energy: int = 0,
        age: int = 0,
        direction: tuple[float, float] = (0.0, 0.0),
        attack_cooldown: int = 0,
        stagnant_cycles: int = 0,
    ):
        self.state = state
        self.age = age
        self.energy = energy
        self.direction = direction
        self.attack_cooldown = attack_cooldown
        self.stagnant_cycles = stagnant_cycles
        self.has_moved = False

    @classmethod
    def spawn(cls, state: CellState, energy: int) -> Cell:
        """A fresh live cell: zero age, stagnation, cooldown and momentum."""
        return cls(state=state, energy=energy)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_dead(self) -> bool:
        return self.state == CellState.DEAD

    @property
    def is_alive(self) -> bool:
        """True for any non-DEAD state."""
        return self.state != CellState.DEAD

    # ------------------------------------------------------------------
    # Energy / death
    # ------------------------------------------------------------------

    def kill(self) -> None:
        """Transition to DEAD and zero every counter."""
        self.state = CellState.DEAD
        self.energy = 0
        self.age = 0
        self.stagnant_cycles = 0
        self.attack_cooldown = 0
        self.direction = (0.0, 0.0)

    def spend(self, amount: int) -> bool:
        """
        Subtract energy, dying if it drops to zero or below.

        Returns:
            True if the cell is still alive afterwards.
        """
        self.energy -= amount
        if self.energy <= 0:
            self.kill()
            return False
        return True

    def gain(self, amount: int) -> None:
        self.energy += amount

    # ------------------------------------------------------------------
    # Copies / views
    # ------------------------------------------------------------------

    def copy(self) -> Cell:
        """Independent copy (has_moved is not carried over)."""
        return Cell(
            state=self.state,
            energy=self.energy,
            age=self.age,
            direction=self.direction,
            attack_cooldown=self.attack_cooldown,
            stagnant_cycles=self.stagnant_cycles,
        )

    def view(self) -> CellView:
        return CellView(state=self.state, age=self.age, energy=self.energy)

    def __repr__(self) -> str:
        return (
            f"Cell(state={self.state.name}, energy={self.energy}, age={self.age}, "
            f"cooldown={self.attack_cooldown}, stagnant={self.stagnant_cycles})"
        )
