"""
Docker access: Engine API client and docker CLI runner.
"""
