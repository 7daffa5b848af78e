#!/usr/bin/env python3
"""
Tests for alignment parsing and column statistics
"""

import pytest

from ecod_curation.analysis.msa import (
    alignment_window, compute_alignment_summary, format_positions,
    parse_alignment, parse_positions
)
from ecod_curation.exceptions import AlignmentError
from ecod_curation.models.msa import AlignedSequence, MSARecord


class TestParseAlignment:
    """Test FASTA parsing"""

    def test_parse(self, alignment_fasta):
        sequences = parse_alignment(alignment_fasta)
        assert [s.identifier for s in sequences] == ['seq1', 'seq2', 'seq3', 'seq4']
        assert sequences[0].header == 'seq1 first'
        assert sequences[3].sequence == 'MKVALG'

    def test_lower_case_is_upper_cased(self):
        sequences = parse_alignment(">a\nmkv\n>b\nMKV\n")
        assert sequences[0].sequence == 'MKV'

    @pytest.mark.parametrize("data", ["", "   \n", None])
    def test_empty(self, data):
        with pytest.raises(AlignmentError):
            parse_alignment(data)

    def test_ragged_rows(self):
        with pytest.raises(AlignmentError):
            parse_alignment(">a\nMKV\n>b\nMK\n")

    def test_not_fasta(self):
        with pytest.raises(AlignmentError):
            parse_alignment("just some text")


class TestPositions:
    """Test stored position lists"""

    def test_parse(self):
        assert parse_positions("3, 7,12") == [3, 7, 12]
        assert parse_positions("1,,2,") == [1, 2]

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_empty(self, value):
        assert parse_positions(value) == []

    @pytest.mark.parametrize("value", ["1,x", "-1"])
    def test_invalid(self, value):
        with pytest.raises(AlignmentError):
            parse_positions(value)

    def test_format(self):
        assert format_positions([0, 4, 5]) == "0,4,5"
        assert parse_positions(format_positions([2, 9])) == [2, 9]


class TestAlignmentSummary:
    """Test recomputed alignment statistics"""

    def test_summary(self, alignment_fasta):
        summary = compute_alignment_summary(parse_alignment(alignment_fasta))
        assert summary.alignment_length == 6
        assert summary.num_sequences == 4
        assert summary.conserved_positions == [0]
        assert summary.gap_positions == [3]
        assert summary.avg_identity == pytest.approx(0.6)

    def test_lower_conservation_threshold(self, alignment_fasta):
        summary = compute_alignment_summary(parse_alignment(alignment_fasta),
                                            conservation_threshold=0.75)
        assert summary.conserved_positions == [0, 1, 2, 4, 5]

    def test_gap_column_never_conserved(self, alignment_fasta):
        summary = compute_alignment_summary(parse_alignment(alignment_fasta),
                                            conservation_threshold=0.0, gap_threshold=0.5)
        assert 3 not in summary.conserved_positions
        assert summary.conserved_positions == [0, 1, 2, 4, 5]

    def test_higher_gap_threshold(self, alignment_fasta):
        summary = compute_alignment_summary(parse_alignment(alignment_fasta), gap_threshold=0.8)
        assert summary.gap_positions == []
        assert 3 in summary.conserved_positions

    def test_single_sequence(self):
        summary = compute_alignment_summary([AlignedSequence('only', 'MK-V')])
        assert summary.avg_identity is None
        assert summary.gap_positions == [2]
        assert summary.conserved_positions == [0, 1, 3]

    def test_identical_sequences(self):
        sequences = [AlignedSequence('a', 'MKV'), AlignedSequence('b', 'MKV')]
        summary = compute_alignment_summary(sequences)
        assert summary.avg_identity == pytest.approx(1.0)

    def test_no_sequences(self):
        with pytest.raises(AlignmentError):
            compute_alignment_summary([])

    def test_ragged_sequences(self):
        with pytest.raises(AlignmentError):
            compute_alignment_summary([AlignedSequence('a', 'MKV'), AlignedSequence('b', 'MK')])

    def test_to_dict(self, alignment_fasta):
        data = compute_alignment_summary(parse_alignment(alignment_fasta)).to_dict()
        assert data['conserved_positions'] == [0]
        assert data['gap_positions'] == [3]


class TestAlignmentWindow:
    """Test alignment slicing"""

    def test_window(self, alignment_fasta):
        window = alignment_window(parse_alignment(alignment_fasta), 2, 3)
        assert [s.sequence for s in window] == ['V-L', 'I-L', 'V-I', 'VAL']

    def test_window_past_end(self, alignment_fasta):
        window = alignment_window(parse_alignment(alignment_fasta), 4, 10)
        assert window[0].sequence == 'LA'

    @pytest.mark.parametrize("start,size", [(-1, 5), (0, 0)])
    def test_invalid_window(self, alignment_fasta, start, size):
        with pytest.raises(AlignmentError):
            alignment_window(parse_alignment(alignment_fasta), start, size)


class TestMSARecord:
    """Test the stored alignment model"""

    def test_from_db_row(self, alignment_fasta):
        record = MSARecord.from_db_row({
            'id': 1, 'cluster_id': 101, 'alignment_data': alignment_fasta,
            'avg_identity': '0.61', 'conserved_positions': '0', 'gap_positions': '3'
        })
        assert record.avg_identity == pytest.approx(0.61)
        assert record.avg_coverage is None
        assert record.to_dict()['cluster_id'] == 101
