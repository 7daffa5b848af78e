"""
Pure analysis helpers used by the curation services
"""
