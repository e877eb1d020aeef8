"""I/O utilities for solver inputs, outputs and result tables."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd


def read_binary_file(path: Path | str) -> np.ndarray:
    """Read a raw file of native-endian float64 values."""
    return np.fromfile(Path(path), dtype=np.float64)


def write_binary_file(path: Path | str, values: np.ndarray) -> None:
    """Write values as raw native-endian float64."""
    np.ascontiguousarray(values, dtype=np.float64).tofile(Path(path))


def load_results(data_dir: Path | str, base_name: str) -> dict[str, pd.DataFrame]:
    """Load the parquet tables written by ``LinearSolver.save_results``.

    Parameters
    ----------
    data_dir : Path or str
        Directory containing the data files
    base_name : str
        Base filename without the ``_config``/``_global``/``_perrank`` suffix

    Returns
    -------
    dict
        DataFrames keyed by ``"config"``, ``"global"`` and ``"perrank"``

    Raises
    ------
    FileNotFoundError
        If any of the three files is missing

    """
    data_dir = Path(data_dir)
    tables = {}
    for kind in ("config", "global", "perrank"):
        path = data_dir / f"{base_name}_{kind}.parquet"
        if not path.exists():
            raise FileNotFoundError(
                f"No results found at {path}. Run the corresponding compute script first."
            )
        tables[kind] = pd.read_parquet(path)
    return tables


def find_result_runs(data_dir: Path | str) -> list[str]:
    """Base names of all saved runs in ``data_dir``, newest first."""
    data_dir = Path(data_dir)
    configs = sorted(
        data_dir.glob("*_config.parquet"), key=lambda p: p.stat().st_mtime, reverse=True
    )
    return [p.name[: -len("_config.parquet")] for p in configs]


def ensure_output_dir(path: Path | str) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_repo_root() -> Path:
    """Nearest directory above this package that holds pyproject.toml."""
    here = Path(__file__).resolve()
    return next((p for p in here.parents if (p / "pyproject.toml").is_file()), here.parents[2])


def get_experiment_name(script: Path | str) -> str:
    """Experiment name of a driver script: its folder path below Experiments/.

    ``Experiments/distributed/compute_distributed.py`` gives ``"distributed"``.

    Raises
    ------
    ValueError
        If the script does not live in a subfolder of Experiments/
    """
    parts = Path(script).resolve().parts
    try:
        top = parts.index("Experiments")
    except ValueError:
        raise ValueError(f"{script} is not inside an Experiments/ folder") from None

    name = "/".join(parts[top + 1 : -1])
    if not name:
        raise ValueError(f"{script} must live in a subfolder of Experiments/")
    return name


def _experiment_dir(kind: str, script: Path | str, create: bool) -> Path:
    path = get_repo_root() / kind / get_experiment_name(script)
    return ensure_output_dir(path) if create else path


def get_data_dir(script: Path | str, create: bool = True) -> Path:
    """Where an experiment keeps its results: <repo>/data/<experiment>/."""
    return _experiment_dir("data", script, create)


def get_figures_dir(script: Path | str, create: bool = True) -> Path:
    """Where an experiment keeps its plots: <repo>/figures/<experiment>/."""
    return _experiment_dir("figures", script, create)
