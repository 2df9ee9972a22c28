"""Staff-rostering workflow engine: shifts, bids, swaps and rosters."""

__version__ = "0.1.0"
