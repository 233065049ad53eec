"""
Extract Layer
=============
Spreadsheet source client and the batch fetch adapter.
"""
