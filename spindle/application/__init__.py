"""Application layer: DTOs, repository protocols and engine services.

Depends only on domain and protocol definitions; infrastructure implements
the repository interfaces.
"""
