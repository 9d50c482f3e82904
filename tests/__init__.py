"""
Test suite for PagePal.
"""
