from flowdash_auth.storage.credentials import (
    CredentialStore,
    InMemoryCredentialStore,
    SQLCredentialStore,
)
from flowdash_auth.storage.tokens import (
    InMemoryTokenStore,
    SQLTokenStore,
    StoredToken,
    TokenStore,
    generate_token,
)

__all__ = [
    "CredentialStore",
    "InMemoryCredentialStore",
    "SQLCredentialStore",
    "TokenStore",
    "InMemoryTokenStore",
    "SQLTokenStore",
    "StoredToken",
    "generate_token",
]
