"""Utility modules for command-line parsing and I/O."""

from .cli import create_parser, parse_options
from .io import (
    read_binary_file,
    write_binary_file,
    load_results,
    find_result_runs,
    ensure_output_dir,
    get_repo_root,
    get_experiment_name,
    get_data_dir,
    get_figures_dir,
)

__all__ = [
    # CLI
    "create_parser",
    "parse_options",
    # I/O
    "read_binary_file",
    "write_binary_file",
    "load_results",
    "find_result_runs",
    "ensure_output_dir",
    "get_repo_root",
    "get_experiment_name",
    "get_data_dir",
    "get_figures_dir",
]
