"""
Tests for pore_path

This package contains tests for:
- B-spline basis, interpolation and curves
- Neighbour search and free distance
- Simulated annealing
- Probe path finding and the molecular path
- PDB reading, output writers, pipeline and CLI
"""
