"""Core LAS pipeline execution logic.

This module contains the actual pipeline runner, separated from argument parsing.
Scripts are thin wrappers; this is the real implementation.
"""

import json
import logging
import importlib.util
import shutil
from pathlib import Path
from typing import Optional, Dict, Any

from lasqc.setup_directories import setup_output_directories
from lasqc.pipeline.orchestrator import PipelineOrchestrator
from lasqc.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig

__all__ = ['load_user_config_dict', 'build_config', 'run_las_pipeline']

logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load config module from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def build_config(user_config: Optional[dict] = None,
                 cli_args: Optional[Dict[str, Any]] = None,
                 verbose: bool = False):
    """Resolve Param < User < CLI into an ``InternalConfig``."""
    user_cfg = UserConfig.model_validate(user_config or {})

    cli_args = dict(cli_args or {})
    if verbose and "log_level" not in cli_args:
        cli_args["log_level"] = "DEBUG"
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    return resolve_config(ParamConfig(), user_cfg, cli_cfg)


def run_las_pipeline(
    user_config_path: str,
    cli_args: Optional[Dict[str, Any]] = None,
    max_runtime: Optional[float] = None,
    rerun: bool = False,
    verbose: bool = False
) -> Dict:
    """Execute the LAS quality-control pipeline over a directory.

    1. Loads and resolves configuration (Param < User < CLI)
    2. Optionally cleans the output directory if rerun=True
    3. Sets up output directories
    4. Runs the orchestrator until every pending file is processed

    Parameters
    ----------
    user_config_path : str
        Path to user config file (Python file with CONFIG dict).
    cli_args : dict, optional
        CLI overrides. Keys: input_dir, output_dir, workers, log_level,
        no_netcdf. All optional.
    max_runtime : float, optional
        Maximum runtime in minutes.
    rerun : bool, optional
        If True, delete the output directory before running.
    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Returns
    -------
    dict
        Run summary from ``PipelineOrchestrator.stop``.

    Examples
    --------
    ::

        run_las_pipeline("scripts/user_config.py", cli_args={"workers": 4})
    """
    config = build_config(load_user_config_dict(user_config_path), cli_args, verbose)

    if config.output_dir is None:
        raise ValueError("output_dir must be set in the user config or on the command line")

    if rerun:
        output_path = Path(config.output_dir)
        if output_path.exists():
            print(f"Cleaning output directory: {output_path}")
            shutil.rmtree(output_path)

    output_dirs = setup_output_directories(config.output_dir)

    print(f"\n{'='*60}")
    print("LAS Quality Pipeline")
    print('='*60)
    print(f"Config:  {user_config_path}")
    print(f"Input:   {config.input_dir}")
    print(f"Output:  {config.output_dir}")
    print(f"Workers: {config.pipeline.workers}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(mode="json"), indent=2))
        print('='*60)

    orchestrator = PipelineOrchestrator(config, output_dirs)
    return orchestrator.start(max_runtime=max_runtime)
