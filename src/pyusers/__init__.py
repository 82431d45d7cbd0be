"""
PyUsers - user accounts keyed by external identity providers.

Ships a small FastAPI users application together with an integration-test
harness that builds isolated, resettable instances of it.
"""

__version__ = "0.1.0"
__author__ = "PyUsers Team"
__license__ = "MIT"

from pyusers.models.identity_provider import IdentityProvider

__all__ = ["IdentityProvider", "__version__"]
