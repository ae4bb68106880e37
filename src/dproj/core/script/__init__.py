"""
Lua sandboxes and the host/script value boundary.
"""
