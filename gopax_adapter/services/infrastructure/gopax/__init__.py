"""Gopax REST infrastructure adapters."""

from .errors import GopaxErrorClassifier
from .gopax_client import GopaxClient
from .gopax_rest import GopaxREST
from .markets import MarketCatalog
from .signer import Credentials, SignedRequest, sign

__all__ = [
    "GopaxClient",
    "GopaxREST",
    "GopaxErrorClassifier",
    "MarketCatalog",
    "Credentials",
    "SignedRequest",
    "sign",
]
