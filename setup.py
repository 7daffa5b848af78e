#!/usr/bin/env python3
"""
Setup script for ecod-curation
"""

from setuptools import setup, find_packages

setup(
    name="ecod-curation",
    version="0.1.0",
    description="Curation toolkit for ECOD protein domain clusters",
    author="RD Schaeffer",
    author_email="dustin.schaeffer@gmail.com",
    packages=find_packages(include=["ecod_curation", "ecod_curation.*"]),
    package_data={
        "ecod_curation.db": ["migrations/*.sql"],
    },
    install_requires=[
        "psycopg2-binary>=2.9.3",
        "pyyaml>=6.0",
        "biopython>=1.79",
        "numpy>=1.22.0",
        "pandas>=1.4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'ecod-curation=ecod_curation.cli.main:main',
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.8",
)
