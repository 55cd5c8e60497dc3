"""
Test suite for the pdf_composer package.
"""
