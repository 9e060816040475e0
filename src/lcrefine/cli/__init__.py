"""Command-line interface modules for lcrefine pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from lcrefine.cli.run_refine import run_refine_pipeline

__all__ = ['run_refine_pipeline']
