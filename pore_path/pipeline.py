"""Top-level pipeline orchestration for pore_path."""

from __future__ import annotations
from collections import defaultdict
from pathlib import Path
from typing import Sequence

import numpy as np

from pore_path.models import Atom, PoreAnalysis
from pore_path.path_finding.finder import PathFindingMethod


def residue_centres(
    atoms: Sequence[Atom],
) -> tuple[list[tuple[str, int, str]], np.ndarray]:
    """Centre of geometry of every residue, in order of first appearance.

    Residues are told apart by chain and sequence number and returned as
    ``(chain, res_id, res_name)``.
    """
    groups: dict[tuple[str, int], list[np.ndarray]] = defaultdict(list)
    names: dict[tuple[str, int], str] = {}
    for atom in atoms:
        key = (atom.chain, atom.res_id)
        groups[key].append(atom.pos)
        names.setdefault(key, atom.res_name)
    residues = [(chain, res_id, names[(chain, res_id)]) for chain, res_id in groups]
    centres = np.array([np.mean(g, axis=0) for g in groups.values()]).reshape(-1, 3)
    return residues, centres


def find_pore_path(
    atoms: Sequence[Atom],
    method: PathFindingMethod = "inplane-optim",
    probe_radius: float = 0.0,
    step_length: float = 0.1,
    max_radius: float = 1.0,
    max_steps: int = 10000,
    init_pos=None,
    chan_dir=(0.0, 0.0, 1.0),
    cutoff: float | None = None,
    box=None,
    sa_seed: int = 0,
    sa_max_iter: int = 1000,
    sa_cost_samples: int = 10,
    sa_conv_tol: float = 1e-3,
    sa_init_temp: float = 0.1,
    sa_cooling_fac: float = 0.98,
    sa_step: float = 0.001,
    sa_adaptive: bool = False,
    margin: float = 0.0,
    map_residues: bool = True,
    parallel: bool = False,
    verbose: bool = False,
) -> PoreAnalysis:
    """Find the permeation pathway through a set of pore-forming atoms.

    Parameters
    ----------
    atoms:
        Pore-forming atoms, positions and radii in nm.
    method:
        "inplane-optim", "optim-direction" or "naive-cylindrical".
    probe_radius:
        Radius of the probe particle, subtracted from every free distance.
    step_length:
        Probe step length in nm.
    max_radius:
        Free distance beyond which the probe counts as having left the pore.
    max_steps:
        Maximum number of probe steps per direction.
    init_pos:
        Initial probe position.  Defaults to the centre of geometry of *atoms*.
    chan_dir:
        Channel direction vector; normalised internally.
    cutoff:
        Neighbour search cutoff in nm.  ``None`` considers every atom.
    box:
        Orthorhombic box edge lengths for periodic distances, or ``None``.
    sa_seed, sa_max_iter, sa_cost_samples, sa_conv_tol, sa_init_temp,
    sa_cooling_fac, sa_step, sa_adaptive:
        Simulated annealing parameters.
    margin:
        Extra distance added to the pore radius when flagging pore-lining
        residues.
    map_residues:
        Map residue centres of geometry onto the pathway.
    parallel:
        Step both directions in separate threads.
    verbose:
        Print progress messages.
    """
    from pore_path.optim.simulated_annealing import AnnealingParameters
    from pore_path.path_finding.finder import (
        PathFinderParameters,
        ProbePathFinder,
        make_strategy,
    )
    from pore_path.path_finding.free_distance import FreeDistanceProbe
    from pore_path.search.neighbor_search import NeighborSearch

    if not atoms:
        raise ValueError("No pore-forming atoms given")

    total = 3 if map_residues else 2
    positions = np.array([a.pos for a in atoms], dtype=np.float64)
    radii = np.array([a.radius for a in atoms], dtype=np.float64)

    if init_pos is None:
        init_pos = positions.mean(axis=0)

    params = PathFinderParameters(
        probe_radius=probe_radius,
        step_length=step_length,
        max_radius=max_radius,
        max_steps=max_steps,
    )
    annealing = AnnealingParameters(
        seed=sa_seed,
        init_temp=sa_init_temp,
        cooling_factor=sa_cooling_fac,
        max_iter=sa_max_iter,
        num_cost_samples=sa_cost_samples,
        conv_rel_tol=sa_conv_tol,
        step_length=sa_step,
        adaptive_step=sa_adaptive,
    )

    if verbose:
        print(f"[1/{total}] Probing pore (method={method}) …")
    search = NeighborSearch(positions, cutoff=cutoff, box=box)
    probe = FreeDistanceProbe(search, radii, probe_radius=probe_radius)
    strategy = make_strategy(method, params, probe=probe, annealing=annealing)
    finder = ProbePathFinder(params, strategy, init_pos, chan_dir=chan_dir)
    path_points = finder.find_path(parallel=parallel)
    if verbose:
        print(f"      {len(path_points)} support points")

    if verbose:
        print(f"[2/{total}] Fitting molecular path …")
    molecular_path = finder.get_molecular_path()
    if verbose:
        s_min, r_min = molecular_path.min_radius()
        print(f"      length {molecular_path.length():.3f} nm, "
              f"min radius {r_min:.3f} nm at s = {s_min:.3f} nm")

    analysis = PoreAnalysis(path_points=path_points, molecular_path=molecular_path)
    if not map_residues:
        return analysis

    if verbose:
        print(f"[3/{total}] Mapping residues …")
    residues, centres = residue_centres(atoms)
    mapping = molecular_path.map_selection(centres, box=box)

    analysis.residues = residues
    analysis.residue_mapping = mapping
    analysis.num_unmapped = len(residues) - len(mapping)
    analysis.pore_lining = molecular_path.check_if_inside(
        mapping, margin=margin,
        s_lo=molecular_path.s_lo(), s_hi=molecular_path.s_hi(),
    )
    if verbose:
        n_lining = sum(1 for v in analysis.pore_lining.values() if v)
        print(f"      {len(mapping)} residues mapped, "
              f"{analysis.num_unmapped} omitted, {n_lining} pore-lining")
    return analysis


def analyse_pdb(
    pdb_path: str | Path,
    output_dir: str | Path = ".",
    formats: list[str] | None = None,
    num_out_pts: int = 1000,
    extrap_dist: float = 0.0,
    include_hetatm: bool = False,
    chains: list[str] | None = None,
    verbose: bool = False,
    **kwargs,
) -> PoreAnalysis:
    """Full pipeline: PDB file → pore pathway + output files.

    Parameters
    ----------
    pdb_path:
        Path to a PDB file.
    output_dir:
        Directory for output files.
    formats:
        List of output formats to generate, e.g. ["json", "txt", "obj", "png"].
        Defaults to ["json", "txt"].
    num_out_pts:
        Number of arc length samples in the written profile.
    extrap_dist:
        Distance the written profile extends beyond either opening.
    include_hetatm:
        Treat HETATM records as pore-forming atoms.
    chains:
        Restrict the structure to these chains.
    verbose:
        Print progress messages.
    **kwargs:
        Forwarded to :func:`find_pore_path`.
    """
    from pore_path.io.pdb_parser import parse_pdb
    from pore_path.output.mesh_obj import write_obj
    from pore_path.output.plot import render_profile_png
    from pore_path.output.profile import write_json, write_txt

    if formats is None:
        formats = ["json", "txt"]
    unknown = set(formats) - {"json", "txt", "obj", "png"}
    if unknown:
        raise ValueError(
            f"Unknown output format(s): {sorted(unknown)}. Use json, txt, obj or png."
        )

    pdb_path = Path(pdb_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if verbose:
        print(f"Parsing structure: {pdb_path}")
    atoms = parse_pdb(pdb_path, include_hetatm=include_hetatm, chains=chains)
    if verbose:
        print(f"      {len(atoms)} atoms loaded")

    analysis = find_pore_path(atoms, verbose=verbose, **kwargs)

    if verbose:
        print("Writing output …")
    stem = pdb_path.stem

    if "json" in formats:
        write_json(analysis, output_dir / f"{stem}_pore.json",
                   n_points=num_out_pts, extrap_dist=extrap_dist, verbose=verbose)
    if "txt" in formats:
        write_txt(analysis, output_dir / f"{stem}_pore.txt",
                  n_points=num_out_pts, extrap_dist=extrap_dist, verbose=verbose)
    if "obj" in formats:
        write_obj(analysis.molecular_path, output_dir / f"{stem}_pore.obj",
                  extrap_dist=extrap_dist, verbose=verbose)
    if "png" in formats:
        render_profile_png(analysis.molecular_path, output_dir / f"{stem}_profile.png",
                           n_points=num_out_pts, extrap_dist=extrap_dist,
                           verbose=verbose)

    if verbose:
        print("Done.")

    return analysis
