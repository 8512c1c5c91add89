"""auth/ -- Authentication and account package for DevConnect.

Layer rule: auth/ imports only core/ plus stdlib and third-party libraries.
It does NOT import from api/ or social/.
api/ and social/ import from auth/, not the other way around.
"""
