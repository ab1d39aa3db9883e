"""
Command-line entry points for the TLE sync job.
"""
