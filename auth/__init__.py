"""auth/ -- Bearer-token authentication package for FollowGraph.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or social/.
api/ and social/ import from auth/, not the other way around.
"""
