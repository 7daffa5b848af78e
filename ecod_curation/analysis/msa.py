#!/usr/bin/env python3
"""
Multiple sequence alignment analysis

Parses the FASTA alignments stored for clusters and recomputes the column
statistics shown next to them. Positions are 0-based alignment columns.
"""
import logging
from io import StringIO
from typing import List, Optional, Sequence

import numpy as np
from Bio import AlignIO

from ecod_curation.exceptions import AlignmentError
from ecod_curation.models.msa import AlignedSequence, AlignmentSummary

logger = logging.getLogger("ecod_curation.analysis.msa")

GAP_CHARS = ('-', '.')


def parse_alignment(data: str) -> List[AlignedSequence]:
    """Parse a FASTA formatted alignment

    Args:
        data: Alignment text

    Returns:
        Aligned sequences in file order, residues upper-cased

    Raises:
        AlignmentError: If the text is empty, not FASTA, or the rows have
            different lengths
    """
    if not data or not data.strip():
        raise AlignmentError("Alignment data is empty")

    try:
        alignment = AlignIO.read(StringIO(data), "fasta")
    except ValueError as e:
        raise AlignmentError(f"Invalid FASTA alignment: {str(e)}") from e

    return [AlignedSequence(header=record.description, sequence=str(record.seq).upper())
            for record in alignment]


def parse_positions(value: Optional[str]) -> List[int]:
    """Parse a stored comma-separated position list ("3,7,12")

    Raises:
        AlignmentError: If an entry is not a non-negative integer
    """
    if not value or not value.strip():
        return []
    positions = []
    for item in value.split(','):
        item = item.strip()
        if not item:
            continue
        try:
            position = int(item)
        except ValueError as e:
            raise AlignmentError(f"Invalid alignment position: {item!r}") from e
        if position < 0:
            raise AlignmentError(f"Invalid alignment position: {position}")
        positions.append(position)
    return positions


def format_positions(positions: Sequence[int]) -> str:
    return ",".join(str(int(p)) for p in positions)


def _residue_matrix(sequences: Sequence[AlignedSequence]) -> np.ndarray:
    """Character matrix of an alignment, one row per sequence

    parse_alignment already rejects ragged input through AlignIO; the length
    check covers callers that build AlignedSequence rows themselves.
    """
    if not sequences:
        raise AlignmentError("Alignment has no sequences")
    lengths = {len(s.sequence) for s in sequences}
    if len(lengths) != 1:
        raise AlignmentError("Aligned sequences have different lengths",
                             {"lengths": sorted(lengths)})
    if lengths == {0}:
        raise AlignmentError("Aligned sequences are empty")
    return np.array([list(s.sequence) for s in sequences])


def mean_pairwise_identity(matrix: np.ndarray, gaps: np.ndarray) -> Optional[float]:
    """Mean identity over all sequence pairs

    Identity of a pair is identical residues over columns where neither
    sequence has a gap. Pairs sharing no such column are skipped.
    """
    n = matrix.shape[0]
    identities = []
    residues = ~gaps
    for i in range(n - 1):
        both = residues[i] & residues[i + 1:]
        same = (matrix[i] == matrix[i + 1:]) & both
        compared = both.sum(axis=1)
        mask = compared > 0
        identities.extend((same.sum(axis=1)[mask] / compared[mask]).tolist())
    if not identities:
        return None
    return float(np.mean(identities))


def compute_alignment_summary(sequences: Sequence[AlignedSequence],
                              conservation_threshold: float = 1.0,
                              gap_threshold: float = 0.5) -> AlignmentSummary:
    """Recompute alignment statistics

    A column is a gap column when its gap fraction exceeds gap_threshold.
    A column is conserved when it is not a gap column and its most frequent
    residue makes up at least conservation_threshold of its residues.

    Args:
        sequences: Parsed alignment
        conservation_threshold: Minimum fraction of the most common residue
        gap_threshold: Gap fraction above which a column is a gap column

    Returns:
        AlignmentSummary

    Raises:
        AlignmentError: For empty or ragged alignments
    """
    matrix = _residue_matrix(sequences)
    gaps = np.isin(matrix, GAP_CHARS)
    gap_fraction = gaps.mean(axis=0)

    gap_columns = gap_fraction > gap_threshold
    conserved = []
    for column in np.flatnonzero(~gap_columns):
        residues = matrix[~gaps[:, column], column]
        if residues.size == 0:
            continue
        _, counts = np.unique(residues, return_counts=True)
        if counts.max() / residues.size >= conservation_threshold:
            conserved.append(int(column))

    summary = AlignmentSummary(
        alignment_length=int(matrix.shape[1]),
        num_sequences=int(matrix.shape[0]),
        avg_identity=mean_pairwise_identity(matrix, gaps),
        conserved_positions=conserved,
        gap_positions=[int(p) for p in np.flatnonzero(gap_columns)]
    )
    logger.debug(f"Alignment of {summary.num_sequences} x {summary.alignment_length}: "
                 f"{len(summary.conserved_positions)} conserved, {len(summary.gap_positions)} gap columns")
    return summary


def alignment_window(sequences: Sequence[AlignedSequence], start: int,
                     size: int) -> List[AlignedSequence]:
    """Slice every sequence to columns [start, start + size)

    Raises:
        AlignmentError: For a negative start or non-positive size
    """
    if start < 0 or size < 1:
        raise AlignmentError(f"Invalid alignment window: start={start}, size={size}")
    return [AlignedSequence(header=s.header, sequence=s.sequence[start:start + size])
            for s in sequences]
