# -*- coding: utf-8 -*-
"""
academic_tables.py

Purpose
-------
Convert the report's aggregate DataFrames into LaTeX tables with consistent
styling, so every table handed to the write-up shares one format and
captions/labels are reproducible between runs.

Creates
-------
- One .tex file (complete \\begin{table} ... \\end{table}) per call, usually
  under `outputs/tables/`.
"""

import os
import time
from typing import Optional

import pandas as pd


def dataframe_to_latex(
    df: pd.DataFrame,
    caption: str,
    label: str,
    note: Optional[str] = None,
    precision: int = 3,
    index: bool = False,
) -> str:
    """
    Render a DataFrame as a complete LaTeX table environment.

    Parameters
    ----------
    df : pd.DataFrame
        Table to render.
    caption, label : str
        LaTeX caption and cross-reference label (e.g. 'tab:owners').
    note : str, optional
        Small-print note placed under the table.
    precision : int, default 3
        Decimal places for floats.
    index : bool, default False
        Whether the index is meaningful and should be printed.

    Raises
    ------
    TypeError
        If `df` is not a pandas DataFrame.
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError("Input 'df' must be a pandas DataFrame.")

    n_cols = len(df.columns) + (1 if index else 0)
    body = df.to_latex(
        index=index,
        header=True,
        float_format=f"%.{precision}f",
        column_format="l" * max(n_cols, 1),
        escape=True,
        na_rep="-",
    )
    lines = [
        "\\begin{table}[htbp]",
        "\\centering",
        f"\\caption{{{caption}}}",
        f"\\label{{{label}}}",
        body,
    ]
    if note:
        lines.append("\\begin{tablenotes}[flushleft]")
        lines.append(f"\\item \\small{{{note}}}")
        lines.append("\\end{tablenotes}")
    lines.append("\\end{table}")
    return "\n".join(lines)


def dataframe_to_latex_table(
    df: pd.DataFrame,
    save_path: str,
    caption: str,
    label: str,
    note: Optional[str] = None,
    precision: int = 3,
    index: bool = False,
) -> str:
    """
    Write `dataframe_to_latex(...)` to `save_path` and return the path.

    Prints the artefact path and a [TIME] line; an unwritable path is reported
    and re-raised.
    """
    t0 = time.perf_counter()
    print(f"Generating LaTeX table for: {label}...")
    latex = dataframe_to_latex(df, caption, label, note=note, precision=precision, index=index)
    try:
        out_dir = os.path.dirname(save_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(save_path, "w", encoding="utf-8") as f:
            f.write(latex)
        print(f"✓ Artefact saved: {os.path.abspath(save_path)}")
    except OSError as e:
        print(f"✗ ERROR: Could not write LaTeX table to {save_path}. Reason: {e}")
        raise
    finally:
        print(f"[TIME] academic_tables.dataframe_to_latex_table: {time.perf_counter() - t0:.2f}s")
    return save_path
