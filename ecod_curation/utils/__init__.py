"""
Utility modules for the ECOD curation toolkit
"""
