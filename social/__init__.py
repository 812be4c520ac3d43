"""social/ -- The directed follow graph and viewer-relative profiles.

Layer rule: social/ may import from core/ and auth/models. It does NOT
import from api/.
"""
