"""
Domain services: credential store, audit repository, assignment policy,
workflow engine and login sessions.
"""
