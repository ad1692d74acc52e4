"""
Shared utilities: logging setup and the process lock.
"""
