#!/usr/bin/env python3
"""
Tests for domain quality rollups
"""

import pytest

from ecod_curation.analysis import domain_quality


@pytest.fixture
def frame():
    """Ten domains: six good, two partial, one unjudged and one unmeasured"""
    return domain_quality.bins_frame([
        {'judge': 'good_domain', 'decile': 9, 'band': 'Very High (>90)', 'count': 4},
        {'judge': 'good_domain', 'decile': 7, 'band': 'High (70-90)', 'count': 2},
        {'judge': 'partial_domain', 'decile': 3, 'band': 'Low (<50)', 'count': 2},
        {'judge': None, 'decile': 5, 'band': 'Medium (50-70)', 'count': 1},
        {'judge': 'low_confidence', 'decile': None, 'band': 'Unmeasured', 'count': 1},
    ])


def test_judge_distribution(frame):
    rows = domain_quality.judge_distribution(frame)
    assert rows[0] == {'judge': 'good_domain', 'count': 6, 'fraction': 0.6}
    assert {row['judge'] for row in rows} == {'good_domain', 'partial_domain', 'unjudged',
                                              'low_confidence'}


def test_confidence_distribution_in_band_order(frame):
    rows = domain_quality.confidence_distribution(frame)
    assert [row['band'] for row in rows] == ['Very High (>90)', 'High (70-90)', 'Medium (50-70)',
                                             'Low (<50)', 'Unmeasured']
    assert rows[0]['fraction'] == 0.4


def test_histogram_has_every_decile(frame):
    rows = domain_quality.dpam_histogram(frame)
    assert len(rows) == 10
    assert rows[0] == {'range': '0.0-0.1', 'count': 0}
    assert rows[9] == {'range': '0.9-1.0', 'count': 4}
    assert sum(row['count'] for row in rows) == 9


def test_dpam_by_judge(frame):
    rows = domain_quality.dpam_by_judge(frame)
    assert [row['range'] for row in rows] == ['0.0-0.2', '0.2-0.4', '0.4-0.6', '0.6-0.8', '0.8-1.0']
    assert rows[4]['good_domain'] == 4
    assert rows[3]['good_domain'] == 2
    assert rows[1]['partial_domain'] == 2
    assert rows[2]['unjudged'] == 1
    assert rows[0]['good_domain'] == 0
    assert 'low_confidence' not in rows[0]


def test_overall_quality(frame):
    judge_summary = [
        {'judge': 'good_domain', 'dpam_measured': 6, 'avg_dpam_prob': 0.9,
         'hh_measured': 6, 'avg_hh_prob': 0.8},
        {'judge': 'partial_domain', 'dpam_measured': 2, 'avg_dpam_prob': 0.3,
         'hh_measured': 0, 'avg_hh_prob': None},
    ]
    overall = domain_quality.overall_quality(frame, judge_summary)

    assert overall['total_domains'] == 10
    assert overall['avg_dpam_prob'] == pytest.approx(0.75)
    assert overall['avg_hh_prob'] == pytest.approx(0.8)
    # unmeasured domains are left out of the denominator
    assert overall['high_confidence_fraction'] == pytest.approx(6 / 9, abs=1e-4)


def test_empty_table():
    frame = domain_quality.bins_frame([])
    assert domain_quality.judge_distribution(frame) == []
    assert domain_quality.confidence_distribution(frame) == []
    assert all(row['count'] == 0 for row in domain_quality.dpam_histogram(frame))
    assert domain_quality.dpam_by_judge(frame)[0] == {'range': '0.0-0.2'}
    overall = domain_quality.overall_quality(frame, [])
    assert overall == {'total_domains': 0, 'avg_dpam_prob': None, 'avg_hh_prob': None,
                       'high_confidence_fraction': None}
