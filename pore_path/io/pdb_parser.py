"""Fixed-column PDB reader for pore-forming atoms.

Coordinates are converted from Ångström to nanometres on reading and every
atom gets a vdW radius (nm) from its element.  Solvent is skipped by default
so that waters sitting inside a channel do not plug it.
"""

from __future__ import annotations
import re
from pathlib import Path
from typing import Iterable

import numpy as np

from pore_path.models import Atom

ANGSTROM_TO_NM = 0.1

# Bondi (1964) vdW radii in nm, plus common ions
_VDW_RADII: dict[str, float] = {
    "H": 0.120, "C": 0.170, "N": 0.155, "O": 0.152, "S": 0.180,
    "P": 0.180, "F": 0.147, "CL": 0.175, "BR": 0.185, "I": 0.198,
    "FE": 0.180, "ZN": 0.139, "CA": 0.174, "MG": 0.173, "NA": 0.227,
    "K": 0.275, "MN": 0.173, "NI": 0.163, "CU": 0.140, "CO": 0.163,
    "SE": 0.190,
}
_DEFAULT_RADIUS = 0.170

SOLVENT_RESIDUES = frozenset({"HOH", "WAT", "SOL", "TIP", "TIP3", "DOD"})


def _infer_element(atom_name: str) -> str:
    """Element symbol from a PDB atom name, for files without an element column."""
    letters = re.sub(r"[^A-Za-z]", "", atom_name).upper()
    if not letters:
        return "C"
    # CA is the alpha carbon, not calcium
    if len(letters) >= 2 and letters[:2] != "CA" and letters[:2] in _VDW_RADII:
        return letters[:2]
    return letters[0]


def vdw_radius(element: str) -> float:
    return _VDW_RADII.get(element.upper(), _DEFAULT_RADIUS)


def _parse_atom_line(line: str) -> Atom | None:
    try:
        xyz = [float(line[c:c + 8]) for c in (30, 38, 46)]
    except ValueError:
        return None

    name = line[12:16].strip()
    element = line[76:78].strip().upper() if len(line) > 76 else ""
    if not element:
        element = _infer_element(name)

    res_seq = line[22:26].strip()
    return Atom(
        element=element,
        pos=np.array(xyz, dtype=np.float64) * ANGSTROM_TO_NM,
        radius=vdw_radius(element),
        res_id=int(res_seq) if res_seq.lstrip("-").isdigit() else 0,
        atom_name=name,
        res_name=line[17:20].strip(),
        chain=line[21:22].strip(),
    )


def parse_pdb(
    path: str | Path,
    include_hetatm: bool = False,
    skip_solvent: bool = True,
    chains: Iterable[str] | None = None,
) -> list[Atom]:
    """Read the pore-forming atoms of a PDB file.

    Parameters
    ----------
    path:
        PDB file.
    include_hetatm:
        Also read HETATM records (ligands, ions).  Off by default.
    skip_solvent:
        Drop residues named in :data:`SOLVENT_RESIDUES`.
    chains:
        Only keep atoms of these chain identifiers.

    Only the first MODEL of a multi-model file is read.  Raises ``ValueError``
    if no atom survives the filters.
    """
    path = Path(path)
    records = ("ATOM", "HETATM") if include_hetatm else ("ATOM",)
    wanted_chains = None if chains is None else set(chains)

    atoms: list[Atom] = []
    with path.open("r", errors="replace") as fh:
        for line in fh:
            rec = line[:6].strip()
            if rec == "ENDMDL":
                break
            if rec not in records:
                continue
            atom = _parse_atom_line(line)
            if atom is None:
                continue
            if skip_solvent and atom.res_name in SOLVENT_RESIDUES:
                continue
            if wanted_chains is not None and atom.chain not in wanted_chains:
                continue
            atoms.append(atom)

    if not atoms:
        raise ValueError(f"No pore-forming atoms found in {path}")
    return atoms
