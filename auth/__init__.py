"""auth/ -- Credential storage, password hashing and token issuance for authshim.

Layer rule: auth/ imports only stdlib + third-party libraries (plus fastapi in
dependencies.py). It does NOT import from api/ or core/.
api/ imports from auth/, not the other way around.
"""
