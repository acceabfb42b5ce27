"""pore_path: Find and characterise permeation pathways through molecular pores."""

from pore_path.pipeline import analyse_pdb, find_pore_path
from pore_path.path_finding.finder import PathFinderParameters, ProbePathFinder
from pore_path.path_finding.molecular_path import MolecularPath
from pore_path.models import PoreAnalysis

__all__ = [
    "analyse_pdb",
    "find_pore_path",
    "PathFinderParameters",
    "ProbePathFinder",
    "MolecularPath",
    "PoreAnalysis",
]
