"""Radius profile plot of a molecular pathway."""

from __future__ import annotations
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from pore_path.path_finding.molecular_path import MolecularPath


def render_profile_png(
    path: MolecularPath,
    output_path: str | Path,
    n_points: int = 1000,
    extrap_dist: float = 1.0,
    dpi: int = 150,
    verbose: bool = False,
) -> Path:
    """Plot pore radius against arc length, marking the two openings."""
    output_path = Path(output_path)

    s = path.sample_arc_length(n_points, extrap_dist)
    r = path.sample_radii(s)
    s_min, r_min = path.min_radius()

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(s, r, color="#457b9d", linewidth=1.5)
    ax.scatter(
        path.centre_line().unique_knots,
        path.path_radii(),
        s=6, color="#e63946", zorder=3, label="support points",
    )
    ax.axvline(path.s_lo(), color="grey", linestyle="--", linewidth=0.8)
    ax.axvline(path.s_hi(), color="grey", linestyle="--", linewidth=0.8)
    ax.plot([s_min], [r_min], marker="v", color="#2a9d8f",
            label=f"min radius {r_min:.3f} nm")
    ax.set_xlabel("s (nm)")
    ax.set_ylabel("radius (nm)")
    ax.set_ylim(bottom=0.0)
    ax.set_title(f"Pore radius profile (length {path.length():.2f} nm)")
    ax.legend(loc="upper right")

    plt.tight_layout()
    fig.savefig(str(output_path), dpi=dpi)
    plt.close(fig)

    if verbose:
        print(f"  Profile PNG written → {output_path}")
    return output_path
