"""auth/ -- Authentication and authorization package for cvshare.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or cvs/.
api/ imports from auth/, not the other way around.
"""
