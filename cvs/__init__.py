"""cvs/ -- CV documents: domain models, persistence, and access rules.

Layer rule: cvs/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/.
"""
