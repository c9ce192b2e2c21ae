"""
Core merge logic, independent of any frontend.
"""
