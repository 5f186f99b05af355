"""
Header recognition for depth-coded sensor columns and nearest-depth selection.

Probe exports label each channel with a type letter and channel number,
optionally followed by the installation depth in centimeters, e.g. ``A2(15)``
or ``T3(25)``. Depths are normalized to inches.
"""

import re
from typing import Dict, List, Mapping, Optional, Sequence

from soilsense.config import ChannelSpec
from soilsense.models import ColumnDescriptor
from soilsense.utils import get_logger, ColumnDetectionError, PipelineError

CM_PER_INCH = 2.54

logger = get_logger(__name__)

_INCHES_PATTERN = re.compile(r'([0-9]+\.?[0-9]*)\s*(?:inches|inch|in)\b', re.IGNORECASE)


class HeaderPatterns:
    """Compiled recognition rules for one channel type."""

    def __init__(self, spec: ChannelSpec):
        letters = '|'.join(re.escape(letter) for letter in spec.type_letters)
        self.with_depth = re.compile(rf'^(?:{letters})(\d+)\((\d+(?:\.\d+)?)\)\s*$', re.IGNORECASE)
        self.plain = re.compile(rf'^(?:{letters})(\d+)\s*$', re.IGNORECASE)
        self.inches = _INCHES_PATTERN if spec.match_inch_labels else None
        self.free_text: Optional[re.Pattern] = None
        if spec.keywords:
            words = '|'.join(r'\s*'.join(re.escape(part) for part in kw.split()) for kw in spec.keywords)
            self.free_text = re.compile(rf'(?:{words})[^0-9]*([0-9]+(?:\.\d+)?)\s*cm', re.IGNORECASE)


def _match_cell(
    index: int,
    label: str,
    patterns: HeaderPatterns,
    channel_depths: Mapping[int, float]
) -> Optional[ColumnDescriptor]:
    m = patterns.with_depth.match(label)
    if m:
        return ColumnDescriptor(
            column_index=index,
            physical_depth=float(m.group(2)) / CM_PER_INCH,
            label=label,
            channel=int(m.group(1)),
        )

    m = patterns.plain.match(label)
    if m:
        # a plain channel label is consumed by this rule even without a lookup entry
        channel = int(m.group(1))
        inches = channel_depths.get(channel)
        if inches is None:
            return None
        return ColumnDescriptor(column_index=index, physical_depth=float(inches), label=label, channel=channel)

    if patterns.free_text is not None:
        m = patterns.free_text.search(label)
        if m:
            return ColumnDescriptor(
                column_index=index,
                physical_depth=float(m.group(1)) / CM_PER_INCH,
                label=label,
            )

    if patterns.inches is not None:
        m = patterns.inches.search(label)
        if m:
            return ColumnDescriptor(column_index=index, physical_depth=float(m.group(1)), label=label)

    return None


def identify_columns(
    header: Sequence[str],
    spec: ChannelSpec,
    channel_depths: Optional[Mapping[int, float]] = None
) -> List[ColumnDescriptor]:
    """
    Find the sensor-depth columns of one channel type in a header row.

    Rules are tried in order and the first match wins:
    ``<Letter><n>(<cm>)``, plain ``<Letter><n>`` via the channel lookup,
    ``<keyword> ... <n> cm`` free text, and ``<n> inches`` where the channel
    type allows inch labels.

    Args:
        header: Header cells (trimmed before matching)
        spec: Recognition rules for the channel type
        channel_depths: Channel number to inches lookup for plain labels;
            defaults to the table in ``spec``

    Returns:
        Descriptors in header order

    Raises:
        ColumnDetectionError: If no column is recognized
    """
    lookup: Dict[int, float] = dict(spec.channel_depth_inches if channel_depths is None else channel_depths)
    patterns = HeaderPatterns(spec)

    columns: List[ColumnDescriptor] = []
    for index, raw in enumerate(header):
        label = str(raw or '').strip()
        if not label:
            continue
        try:
            descriptor = _match_cell(index, label, patterns, lookup)
        except ValueError:
            # non-positive depth, e.g. A1(0)
            logger.debug(f"Ignoring column {index} ({label!r}): invalid depth")
            continue
        if descriptor is not None:
            columns.append(descriptor)

    if not columns:
        letters = '/'.join(spec.type_letters)
        raise ColumnDetectionError(f"No {letters}#(cm) sensor columns detected", header=list(header))

    logger.info(
        "Recognized columns: "
        + ", ".join(f"{c.label}={c.physical_depth:.1f}in" for c in columns)
    )
    return columns


def select_nearest(columns: Sequence[ColumnDescriptor], depth: float) -> ColumnDescriptor:
    """
    Pick the column whose depth is closest to the requested depth.

    Ties keep the column encountered first.

    Raises:
        PipelineError: If ``columns`` is empty
    """
    if not columns:
        raise PipelineError("Cannot select a depth from an empty column set")

    best = columns[0]
    for column in columns[1:]:
        if abs(column.physical_depth - depth) < abs(best.physical_depth - depth):
            best = column
    return best
