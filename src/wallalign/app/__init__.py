"""
Host integration. Qt-specific code lives here and only here.
"""
