"""
Test suite of the mlpstack package.
"""
