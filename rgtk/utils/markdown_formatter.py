#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ******************************************************************************
# Project: Raster Grid ToolKit (RGTK)
# Author: Eric Robeck <robeckgeo@gmail.com>
#
# Copyright (c) 2025, Eric Robeck
# Licensed under the MIT License
# ******************************************************************************

"""
Markdown Table Formatting for RGTK Reports.

Renders raster headers and per-layer statistics as Markdown tables for the
console and for `.md` report files.
"""
from typing import Any, List, Mapping, Sequence
from rgtk.utils.data_models import StatisticsLayer

def format_value(value: Any) -> str:
    """Formats a value for table output, applying numeric formatting where appropriate."""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        if value.is_integer():
            return f"{int(value):,}"
        return f"{value:,.7g}"
    val_str = str(value)
    # Prevents newlines and pipe characters from breaking the table
    val_str = val_str.replace('|', '<br>').replace('\n', '<br>')
    return val_str

def _table(headers: Sequence[str], rows: List[Sequence[Any]]) -> str:
    header_line = f"| {' | '.join(headers)} |"
    separator_line = f"|{'|'.join(['---'] * len(headers))}|"
    table_rows: List[str] = [header_line, separator_line]
    for row in rows:
        table_rows.append(f"| {' | '.join(format_value(v) for v in row)} |")
    return "\n".join(table_rows) + "\n"

def header_to_markdown_table(header: Mapping[str, float]) -> str:
    """Two-column Key/Value table of a raster header."""
    return _table(['Key', 'Value'], [[key, value] for key, value in header.items()])

def statistics_to_markdown_table(layers: List[StatisticsLayer]) -> str:
    """
    One row per statistic, one column per layer.

    Example:
        | Statistic | Layer 1 |
        |---|---|
        | Valid Count | 8 |
    """
    if not layers:
        return ""
    headers = ['Statistic'] + [f"Layer {s.layer}" for s in layers]
    rows = []
    for display_name, field_name in StatisticsLayer.get_display_fields():
        rows.append([display_name] + [getattr(s, field_name) for s in layers])
    return _table(headers, rows)
