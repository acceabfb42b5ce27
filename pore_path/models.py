"""Central data structures for the pore_path package."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    from pore_path.path_finding.molecular_path import MolecularPath


@dataclass
class Atom:
    element: str
    pos: np.ndarray       # shape (3,), nm
    radius: float         # vdW radius in nm
    res_id: int = 0
    atom_name: str = ""
    res_name: str = ""
    chain: str = ""


@dataclass(frozen=True)
class PathPoint:
    position: np.ndarray  # shape (3,), nm
    radius: float         # free distance at position, nm
    step: int             # signed probe steps from the initial point


@dataclass
class PoreAnalysis:
    path_points: list[PathPoint]
    molecular_path: "MolecularPath"
    residues: list[tuple[str, int, str]] = field(default_factory=list)  # (chain, res_id, res_name)
    residue_mapping: dict[int, np.ndarray] = field(default_factory=dict)  # index into residues -> (s, rho, phi)
    pore_lining: dict[int, bool] = field(default_factory=dict)
    num_unmapped: int = 0
