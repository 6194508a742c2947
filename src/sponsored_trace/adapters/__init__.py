from .bases import ChainClient, PermitSigner, MetadataStore, MetadataDocument
from .signers import LocalKeySigner, recover_permit_signer, permit_digest
from .metadata import HttpMetadataStore, parse_url_or_cid

__all__ = [
    "ChainClient",
    "PermitSigner",
    "MetadataStore",
    "MetadataDocument",
    "LocalKeySigner",
    "recover_permit_signer",
    "permit_digest",
    "HttpMetadataStore",
    "parse_url_or_cid",
]
