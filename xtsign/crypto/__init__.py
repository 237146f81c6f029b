"""
Package crypto provides the two leaf primitives of the signing pipeline:
Ed25519 key management and deterministic directory hashing.
"""

from .keys import (
    KeyPair,
    PUBLIC_KEY_FILENAME,
    PRIVATE_KEY_FILENAME,
    generate_keypair,
    derive_public_key,
    load_private_key,
    load_public_key,
    write_keypair,
    read_private_key_file,
)

from .hashing import (
    list_files,
    hash_tree,
    hash_tree_async,
)

__all__ = [
    'KeyPair',
    'PUBLIC_KEY_FILENAME',
    'PRIVATE_KEY_FILENAME',
    'generate_keypair',
    'derive_public_key',
    'load_private_key',
    'load_public_key',
    'write_keypair',
    'read_private_key_file',
    'list_files',
    'hash_tree',
    'hash_tree_async',
]
