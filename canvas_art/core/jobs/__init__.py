"""
Jobs
====

Generation job storage and lifecycle management.
"""
