import logging
from asyncio import Lock
from typing import Dict

from src.models.canvas_models import CellKey, CellOccupant


class GridStateStore:
    def __init__(self):
        self.grid: Dict[CellKey, CellOccupant] = {}  # claimed cells only, append-only
        self.lock = Lock()  # check-then-insert in try_claim must not interleave

    async def get_snapshot(self) -> Dict[CellKey, CellOccupant]:
        """Get a copy of every claimed cell

        Returns:
            Dict[CellKey, CellOccupant]: all placements accepted before this call
        """
        async with self.lock:
            return dict(self.grid)

    async def try_claim(self, key: CellKey, occupant: CellOccupant) -> bool:
        """Claim the cell for the occupant if nobody claimed it before

        Args:
            key (CellKey): cell to claim, e.g. "3,4"
            occupant (CellOccupant): color and claimant to store

        Returns:
            bool: True if the claim was accepted, False if the cell is already taken
        """
        async with self.lock:
            if key in self.grid:
                logging.info(f"Cell {key} already occupied, placement rejected")
                return False
            self.grid[key] = occupant
            return True

    def __len__(self) -> int:
        return len(self.grid)
