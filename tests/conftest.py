"""Shared fixtures: a synthetic cylindrical pore made of stacked atom rings."""

import numpy as np
import pytest

from pore_path.models import Atom

RING_RADIUS = 1.0
RING_Z = np.arange(10) * 0.3
ATOMS_PER_RING = 20
ATOM_RADIUS = 0.05


def make_ring_atoms(
    ring_radius=RING_RADIUS,
    ring_z=RING_Z,
    atoms_per_ring=ATOMS_PER_RING,
    atom_radius=ATOM_RADIUS,
):
    """Atoms on rings around the z-axis, one residue per atom."""
    atoms = []
    angles = np.linspace(0.0, 2.0 * np.pi, atoms_per_ring, endpoint=False)
    res_id = 1
    for z in ring_z:
        for a in angles:
            atoms.append(Atom(
                element="C",
                pos=np.array([ring_radius * np.cos(a), ring_radius * np.sin(a), z]),
                radius=atom_radius,
                res_id=res_id,
                atom_name="CA",
            ))
            res_id += 1
    return atoms


def pdb_line(serial, name, resn, resi, x, y, z, element, record="ATOM"):
    return (
        f"{record:<6s}{serial:5d} {name:<4s} {resn:3s} A{resi:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{0.0:6.2f}          {element:>2s}"
    )


@pytest.fixture
def ring_atoms():
    return make_ring_atoms()


@pytest.fixture
def ring_pdb(tmp_path):
    """The ring pore written as a PDB file (coordinates in Angstrom)."""
    lines = []
    for i, atom in enumerate(make_ring_atoms(), start=1):
        x, y, z = atom.pos * 10.0
        lines.append(pdb_line(i, "CA", "ALA", atom.res_id, x, y, z, "C"))
    lines.append("END")
    path = tmp_path / "ring.pdb"
    path.write_text("\n".join(lines) + "\n")
    return path
