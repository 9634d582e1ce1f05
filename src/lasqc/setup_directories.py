"""
Directory setup for the LAS quality-control pipeline.

Flat layout under one base directory:
- reports/       JSON processing reports, one per LAS file
- certificates/  JSON quality certificates
- processed/     NetCDF files with the processed curves
- logs/          pipeline log and tracking database
"""

from pathlib import Path

__all__ = [
    'OUTPUT_SUBDIRS',
    'setup_output_directories',
    'get_report_path',
    'get_certificate_path',
    'get_netcdf_path',
    'get_log_path',
]

OUTPUT_SUBDIRS = ("reports", "certificates", "processed", "logs")


def setup_output_directories(base_output_dir=None, verbose=False):
    """
    Create the output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path, optional
        Base output directory. Defaults to ``./output``.
    verbose : bool
        Print the created directories.

    Returns
    -------
    dict
        Paths keyed by 'base', 'reports', 'certificates', 'processed', 'logs'
    """
    if base_output_dir is None:
        base_output_dir = Path.cwd() / "output"

    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {"base": base_output_dir}
    directories.update({name: base_output_dir / name for name in OUTPUT_SUBDIRS})

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    if verbose:
        print("\nOutput directories created:")
        for key, path in directories.items():
            print(f"  {key:12s}: {path}")
        print("=" * 70 + "\n")

    return directories


def _stem(filename):
    return Path(filename).stem


def get_report_path(output_dirs, filename):
    """
    Report path for a LAS file.

    >>> get_report_path(dirs, 'WELL_A.las')
    Path('output/reports/WELL_A_report.json')
    """
    return Path(output_dirs["reports"]) / f"{_stem(filename)}_report.json"


def get_certificate_path(output_dirs, filename):
    """Certificate path: certificates/<stem>_certificate.json"""
    return Path(output_dirs["certificates"]) / f"{_stem(filename)}_certificate.json"


def get_netcdf_path(output_dirs, filename):
    """Processed-curve NetCDF path: processed/<stem>_processed.nc"""
    return Path(output_dirs["processed"]) / f"{_stem(filename)}_processed.nc"


def get_log_path(output_dirs, name="pipeline"):
    """Log file path, creating the log directory if needed."""
    log_dir = Path(output_dirs["logs"])
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{name}.log"
