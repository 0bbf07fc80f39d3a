"""
L0 Data — manager command table and OS maps.
"""
