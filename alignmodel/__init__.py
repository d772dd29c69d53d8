"""
data model, validation and derived coordinates for read groups and read alignments
"""
__version__ = '1.0.0'
