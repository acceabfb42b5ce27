"""Triangulated tube surface around the pore centre line."""

from __future__ import annotations
from pathlib import Path

import numpy as np
import trimesh

from pore_path.geometry.spline_curve import SplineCurve3D
from pore_path.path_finding.molecular_path import MolecularPath


def pore_surface_mesh(
    path: MolecularPath,
    n_points: int = 200,
    n_segments: int = 24,
    extrap_dist: float = 0.0,
) -> trimesh.Trimesh:
    """Return a tube mesh whose cross-section at arc length s has radius r(s).

    The tube is open at both ends.  Negative extrapolated radii are clamped
    to zero.
    """
    s = path.sample_arc_length(n_points, extrap_dist)
    centres = path.sample_points(s)
    tangents = path.sample_norm_tangents(s)
    radii = np.clip(path.sample_radii(s), 0.0, None)

    angles = np.linspace(0.0, 2.0 * np.pi, n_segments, endpoint=False)
    cos_a, sin_a = np.cos(angles), np.sin(angles)

    rings = []
    for centre, tangent, radius in zip(centres, tangents, radii):
        normal, binormal = SplineCurve3D.normal_frame(tangent)
        ring = (centre
                + radius * cos_a[:, None] * normal
                + radius * sin_a[:, None] * binormal)
        rings.append(ring)
    vertices = np.vstack(rings)

    faces = []
    for i in range(n_points - 1):
        a0 = i * n_segments
        b0 = (i + 1) * n_segments
        for j in range(n_segments):
            j1 = (j + 1) % n_segments
            faces.append([a0 + j, a0 + j1, b0 + j])
            faces.append([a0 + j1, b0 + j1, b0 + j])

    return trimesh.Trimesh(
        vertices=vertices,
        faces=np.array(faces, dtype=np.int64),
        process=False,
    )


def write_obj(
    path: MolecularPath,
    output_path: str | Path,
    n_points: int = 200,
    n_segments: int = 24,
    extrap_dist: float = 0.0,
    verbose: bool = False,
) -> Path:
    """Export the pore surface as a Wavefront OBJ file."""
    output_path = Path(output_path)
    mesh = pore_surface_mesh(path, n_points=n_points, n_segments=n_segments,
                             extrap_dist=extrap_dist)
    mesh.export(str(output_path))
    if verbose:
        print(f"  Mesh exported → {output_path}")
    return output_path
