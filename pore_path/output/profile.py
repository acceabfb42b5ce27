"""Write the pore profile and residue mapping as JSON or plain text."""

from __future__ import annotations
import json
from pathlib import Path

import numpy as np

from pore_path.models import PoreAnalysis


class _NumpyEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, (np.integer,)):
            return int(obj)
        if isinstance(obj, (np.floating,)):
            return float(obj)
        if isinstance(obj, (np.bool_,)):
            return bool(obj)
        return super().default(obj)


def profile_summary(analysis: PoreAnalysis) -> dict:
    path = analysis.molecular_path
    s_min, r_min = path.min_radius()
    return {
        "length": path.length(),
        "volume": path.volume(),
        "min_radius": {"s": s_min, "radius": r_min},
        "num_path_points": len(analysis.path_points),
        "num_residues": len(analysis.residues),
        "num_mapped": len(analysis.residue_mapping),
        "num_unmapped": analysis.num_unmapped,
        "num_pore_lining": sum(1 for v in analysis.pore_lining.values() if v),
    }


def _sampled_profile(analysis: PoreAnalysis, n_points: int, extrap_dist: float) -> dict:
    path = analysis.molecular_path
    s = path.sample_arc_length(n_points, extrap_dist)
    return {
        "s": s,
        "points": path.sample_points(s),
        "radius": path.sample_radii(s),
    }


def write_json(
    analysis: PoreAnalysis,
    output_path: str | Path,
    n_points: int = 1000,
    extrap_dist: float = 1.0,
    verbose: bool = False,
) -> Path:
    """Write support points, sampled profile, residue mapping and summary as JSON."""
    output_path = Path(output_path)

    data = {
        "summary": profile_summary(analysis),
        "path_points": [
            {"step": p.step, "position": p.position, "radius": p.radius}
            for p in analysis.path_points
        ],
        "profile": _sampled_profile(analysis, n_points, extrap_dist),
        "residue_mapping": [
            {
                "chain": analysis.residues[idx][0],
                "res_id": analysis.residues[idx][1],
                "res_name": analysis.residues[idx][2],
                "s": coord[0],
                "rho": coord[1],
                "phi": coord[2],
                "pore_lining": analysis.pore_lining.get(idx, False),
            }
            for idx, coord in sorted(analysis.residue_mapping.items())
        ],
        "molecular_path": analysis.molecular_path.to_dict(),
    }

    output_path.write_text(
        json.dumps(data, indent=2, cls=_NumpyEncoder), encoding="utf-8"
    )
    if verbose:
        print(f"  JSON written → {output_path}")
    return output_path


def write_txt(
    analysis: PoreAnalysis,
    output_path: str | Path,
    n_points: int = 1000,
    extrap_dist: float = 1.0,
    verbose: bool = False,
) -> Path:
    """Write a human-readable pore profile as plain text."""
    output_path = Path(output_path)
    summary = profile_summary(analysis)

    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("PORE PROFILE")
    lines.append("=" * 60)
    lines.append(f"Length        : {summary['length']:.4f} nm")
    lines.append(f"Volume        : {summary['volume']:.4f} nm^3")
    lines.append(
        f"Min radius    : {summary['min_radius']['radius']:.4f} nm "
        f"at s = {summary['min_radius']['s']:.4f} nm"
    )
    lines.append(f"Support points: {summary['num_path_points']}")
    lines.append(
        f"Residues      : {summary['num_mapped']} mapped, "
        f"{summary['num_unmapped']} unmapped, "
        f"{summary['num_pore_lining']} pore-lining"
    )
    lines.append("")

    lines.append("PROFILE")
    lines.append("-" * 40)
    lines.append(f"{'s':>10} {'x':>10} {'y':>10} {'z':>10} {'r':>10}")
    prof = _sampled_profile(analysis, n_points, extrap_dist)
    for s, pt, r in zip(prof["s"], prof["points"], prof["radius"]):
        lines.append(
            f"{s:10.4f} {pt[0]:10.4f} {pt[1]:10.4f} {pt[2]:10.4f} {r:10.4f}"
        )

    if analysis.residue_mapping:
        lines.append("")
        lines.append("RESIDUE MAPPING")
        lines.append("-" * 40)
        lines.append("  Format: Chain Residue | s | rho | phi | pore-lining")
        for idx, coord in sorted(analysis.residue_mapping.items()):
            chain, res_id, res_name = analysis.residues[idx]
            lining = "yes" if analysis.pore_lining.get(idx, False) else "no"
            lines.append(
                f"  {chain or '-':>2s} {res_name:>3s}{res_id:5d} | {coord[0]:9.4f} | "
                f"{coord[1]:9.4f} | {coord[2]:7.3f} | {lining}"
            )

    output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    if verbose:
        print(f"  TXT written → {output_path}")
    return output_path
