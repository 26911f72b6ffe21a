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
Raster Statistics Tool for RGTK.

This module powers the 'stats' command: it loads a raster (optionally
reconciled against a mask), computes per-layer statistics and reports them as
a Markdown table on the console, optionally writing a Markdown or JSON report.
"""

import json
import logging
from typing import Optional
from rgtk.utils.data_models import StatisticsReport
from rgtk.utils.markdown_formatter import header_to_markdown_table, statistics_to_markdown_table
from rgtk.utils.raster_data import Raster
from rgtk.utils.script_arguments import StatsArguments

logger = logging.getLogger('raster_statistics')


def build_statistics_report(raster: Raster, source: str, mask_source: Optional[str] = None) -> StatisticsReport:
    """Collect header, storage metadata and statistics of every layer."""
    raster.update_statistics()
    return StatisticsReport(
        source=source,
        header=raster.header.to_dict(),
        layers=[raster.layer_statistics(layer) for layer in range(1, raster.layers + 1)],
        metadata={
            'mode': raster.mode.value,
            'stored_cells': raster.cell_number,
            'mask': mask_source,
            'srs': raster.srs,
        },
    )


def render_markdown(report: StatisticsReport) -> str:
    lines = [f"# Raster Statistics: {report.source}", ""]
    if report.metadata.get('mask'):
        lines += [f"Mask: {report.metadata['mask']}", ""]
    lines += ["## Header", "", header_to_markdown_table(report.header)]
    lines += ["## Statistics", "", statistics_to_markdown_table(report.layers)]
    return "\n".join(lines)


def raster_statistics(args: StatsArguments) -> StatisticsReport:
    """
    Run the statistics tool.

    Args:
        args: Validated StatsArguments

    Returns:
        The StatisticsReport that was printed/written.
    """
    mask = None
    if args.mask_path:
        logger.info(f"Loading mask {args.mask_path}")
        mask = Raster.from_file(args.mask_path)

    logger.info(f"Loading raster {args.input_path}")
    raster = Raster.from_file(args.input_path, calc_positions=args.calc_positions, mask=mask,
                              use_mask_extent=args.use_mask_extent)

    report = build_statistics_report(raster, str(args.input_path),
                                     str(args.mask_path) if args.mask_path else None)
    markdown = render_markdown(report)
    logger.info(markdown)

    if args.output_path:
        args.output_path.parent.mkdir(parents=True, exist_ok=True)
        if args.report_format == 'json':
            args.output_path.write_text(json.dumps(report.to_dict(), indent=2), encoding='utf-8')
        else:
            args.output_path.write_text(markdown, encoding='utf-8')
        logger.info(f"Report written to {args.output_path}")

    return report
