"""
Projects: discovery, loading, task catalogs, scoping and the recent index.
"""
