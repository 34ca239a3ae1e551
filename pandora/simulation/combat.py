"""
Melee combat for Project Pandora.

Every live cell may land at most one attack per generation. A cell with a
positive cooldown only counts it down. A ready cell scans outward (ring 1,
then ring 2, ... up to its range; row-major within a ring) and strikes the
first qualifying target:

  - WARRIOR attacks any live cell, warriors included.
  - ALIVE / MUTATED attack only live cells whose state differs from theirs.

A hit moves `damage` energy off the target and adds `energy_gain` to the
attacker, then resets the attacker's cooldown. A target left with energy
<= 0 dies.
"""

from __future__ import annotations

from pandora.core.cell import Cell, CellState
from pandora.core.config import AttackProfile, SimConfig
from pandora.core.grid import GridStore
from pandora.simulation.statistics import PhaseStats
from pandora.utils.spatial import outward_offsets


class CombatResolver:
    """Range-based, first-target melee resolution."""

    def __init__(self, config: SimConfig):
        self.config = config

    def profile_for(self, state: CellState) -> AttackProfile:
        combat = self.config.combat
        if state == CellState.WARRIOR:
            return combat.warrior
        if state == CellState.MUTATED:
            return combat.mutated
        return combat.alive

    @staticmethod
    def is_valid_target(attacker: Cell, target: Cell | None) -> bool:
        if target is None or target.is_dead:
            return False
        if attacker.state == CellState.WARRIOR:
            return True
        return target.state != attacker.state

    def find_target(self, grid: GridStore, x: int, y: int, attacker: Cell) -> tuple[int, int] | None:
        profile = self.profile_for(attacker.state)
        for dx, dy in outward_offsets(profile.range):
            if self.is_valid_target(attacker, grid.get(x + dx, y + dy)):
                return x + dx, y + dy
        return None

    def try_attack(self, grid: GridStore, x: int, y: int, stats: PhaseStats) -> bool:
        """
        Resolve the attack of the cell at (x, y).

        Returns:
            True if an attack landed.
        """
        attacker = grid.get(x, y)
        if attacker is None or attacker.is_dead:
            return False

        if attacker.attack_cooldown > 0:
            attacker.attack_cooldown -= 1
            return False

        found = self.find_target(grid, x, y, attacker)
        if found is None:
            return False

        profile = self.profile_for(attacker.state)
        target = grid.get(*found)
        if not target.spend(profile.damage):
            stats.deaths_combat += 1
        attacker.gain(profile.energy_gain)
        attacker.attack_cooldown = profile.cooldown
        stats.attacks += 1
        return True
