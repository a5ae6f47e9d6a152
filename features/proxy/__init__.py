"""
Query normalization for the Airflow pass-through endpoints.
"""
