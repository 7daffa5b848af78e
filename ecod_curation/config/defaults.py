#!/usr/bin/env python3
"""
Default configuration values for the ECOD curation toolkit
"""

DEFAULT_CONFIG = {
    'database': {
        'database': 'ecod_protein',
        'host': 'dione',
        'port': 45000,
        'user': 'ecod',
        'schema': 'swissprot',
    },
    'validation': {
        'out_of_range': 'reject',
        'thresholds': {},
    },
    'reclassification': {
        'confidence_high': 0.7,
        'confidence_medium': 0.4,
    },
    'msa': {
        'conservation_threshold': 1.0,
        'gap_threshold': 0.5,
    },
    'pagination': {
        'default_page_size': 20,
        'max_page_size': 500,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
    'export': {
        'output_dir': './exports',
    },
}
