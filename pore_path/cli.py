"""Click CLI entry point for pore_path."""

from __future__ import annotations

import click


@click.command()
@click.argument("input", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--method", default="inplane-optim", show_default=True,
    type=click.Choice(["inplane-optim", "optim-direction", "naive-cylindrical"]),
    help="Path finding method.",
)
@click.option("--probe-step", default=0.1, show_default=True, type=float,
              help="Probe step length in nm.")
@click.option("--probe-radius", default=0.0, show_default=True, type=float,
              help="Radius of the probe particle in nm.")
@click.option("--max-free-dist", default=1.0, show_default=True, type=float,
              help="Free distance in nm beyond which the probe has left the pore.")
@click.option("--max-probe-steps", default=10000, show_default=True, type=int,
              help="Maximum number of probe steps per direction.")
@click.option("--init-probe-pos", default=None, nargs=3, type=float,
              metavar="X Y Z",
              help="Initial probe position in nm (default: centre of geometry).")
@click.option("--chan-dir-vec", default=(0.0, 0.0, 1.0), show_default=True,
              nargs=3, type=float, metavar="X Y Z",
              help="Channel direction vector.")
@click.option("--cutoff", default=None, type=float,
              help="Neighbour search cutoff in nm (default: all atoms).")
@click.option("--sa-seed", required=True, type=int,
              help="Seed of the simulated annealing random number generator.")
@click.option("--sa-max-iter", default=1000, show_default=True, type=int,
              help="Maximum number of annealing iterations.")
@click.option("--sa-cost-samples", default=10, show_default=True, type=int,
              help="Accepted costs compared for the convergence test.")
@click.option("--sa-conv-tol", default=1e-3, show_default=True, type=float,
              help="Relative tolerance of the convergence test.")
@click.option("--sa-init-temp", default=0.1, show_default=True, type=float,
              help="Initial annealing temperature.")
@click.option("--sa-cooling-fac", default=0.98, show_default=True, type=float,
              help="Temperature cooling factor per iteration.")
@click.option("--sa-step", default=0.001, show_default=True, type=float,
              help="Annealing candidate step length.")
@click.option("--sa-adaptive", is_flag=True, default=False,
              help="Shrink the annealing step with the temperature.")
@click.option("--num-out-pts", default=1000, show_default=True, type=int,
              help="Number of points in the written profile.")
@click.option("--extrap-dist", default=0.0, show_default=True, type=float,
              help="Distance in nm the profile extends beyond each opening.")
@click.option("--margin", default=0.0, show_default=True, type=float,
              help="Margin in nm added to the radius when flagging pore-lining residues.")
@click.option("--include-hetatm", is_flag=True, default=False,
              help="Treat HETATM records (ligands, ions) as pore-forming atoms.")
@click.option("--chains", default=None,
              help="Comma-separated chain identifiers to keep (default: all).")
@click.option(
    "--output-dir", default=".", show_default=True,
    type=click.Path(file_okay=False),
    help="Directory for output files.",
)
@click.option(
    "--formats", default="json,txt", show_default=True,
    help="Comma-separated list of output formats: json,txt,obj,png.",
)
@click.option("--parallel", is_flag=True, default=False,
              help="Step both directions in separate threads.")
@click.option("--verbose", is_flag=True, help="Print progress messages.")
def main(
    input: str,
    method: str,
    probe_step: float,
    probe_radius: float,
    max_free_dist: float,
    max_probe_steps: int,
    init_probe_pos: tuple[float, float, float] | None,
    chan_dir_vec: tuple[float, float, float],
    cutoff: float | None,
    sa_seed: int,
    sa_max_iter: int,
    sa_cost_samples: int,
    sa_conv_tol: float,
    sa_init_temp: float,
    sa_cooling_fac: float,
    sa_step: float,
    sa_adaptive: bool,
    num_out_pts: int,
    extrap_dist: float,
    margin: float,
    include_hetatm: bool,
    chains: str | None,
    output_dir: str,
    formats: str,
    parallel: bool,
    verbose: bool,
) -> None:
    """Find the permeation pathway through the pore in INPUT (.pdb).

    Writes the pore radius profile, the mapping of residues onto the pathway
    and, on request, a tube mesh and a profile plot.
    """
    from pore_path.pipeline import analyse_pdb

    fmt_list = [f.strip().lower() for f in formats.split(",") if f.strip()]
    chain_list = None if chains is None else [c.strip() for c in chains.split(",")]

    try:
        analysis = analyse_pdb(
            pdb_path=input,
            output_dir=output_dir,
            formats=fmt_list,
            num_out_pts=num_out_pts,
            extrap_dist=extrap_dist,
            include_hetatm=include_hetatm,
            chains=chain_list,
            verbose=verbose,
            method=method,
            probe_radius=probe_radius,
            step_length=probe_step,
            max_radius=max_free_dist,
            max_steps=max_probe_steps,
            init_pos=init_probe_pos,
            chan_dir=chan_dir_vec,
            cutoff=cutoff,
            sa_seed=sa_seed,
            sa_max_iter=sa_max_iter,
            sa_cost_samples=sa_cost_samples,
            sa_conv_tol=sa_conv_tol,
            sa_init_temp=sa_init_temp,
            sa_cooling_fac=sa_cooling_fac,
            sa_step=sa_step,
            sa_adaptive=sa_adaptive,
            margin=margin,
            parallel=parallel,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    path = analysis.molecular_path
    s_min, r_min = path.min_radius()
    click.echo(
        f"Pore length {path.length():.3f} nm, volume {path.volume():.3f} nm^3, "
        f"min radius {r_min:.3f} nm at s = {s_min:.3f} nm"
    )
