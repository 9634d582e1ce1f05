"""Command-line interface modules for lasqc pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from lasqc.cli.run_pipeline import run_las_pipeline

__all__ = ['run_las_pipeline']
