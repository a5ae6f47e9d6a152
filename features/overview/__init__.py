"""
Overview feature — workspace metrics and derived rows for the catalog and detail views.
"""
