"""Short stable hash helpers for Sitesmith."""

import hashlib


# Bump when the path selector format changes so old tokens never match new ones
PATH_ENCODING_VERSION = "v1"


def short_hash(content: str, length: int = 12) -> str:
    """
    Generate a short deterministic hex digest from a content string.

    Same content always generates the same digest. Used for catalog keys and
    storage keys, never for resolving elements.

    Args:
        content: Content string to hash
        length: Number of hex characters to keep (default: 12)

    Returns:
        Lowercase hex string of the requested length

    Example:
        >>> len(short_hash("html:nth-of-type(1)>body:nth-of-type(1)"))
        12
    """
    return hashlib.sha1(content.encode("utf-8")).hexdigest()[:length]


def path_token(selector: str) -> str:
    """
    Compress a structural selector into a versioned 12-character token.

    Args:
        selector: Root-to-leaf selector string produced by ElementPath

    Returns:
        12 hex characters
    """
    return short_hash(f"{PATH_ENCODING_VERSION}:{selector}")


def recovery_key(original_document: str, prefix_chars: int = 50) -> str:
    """
    Derive the recovery-store key for an editing session.

    The key only depends on the first characters of the baseline document, so
    it stays stable across reloads of the same generated page.

    Args:
        original_document: Baseline HTML document
        prefix_chars: How many leading characters feed the hash

    Returns:
        Key of the form "website-editor-<16 hex chars>"
    """
    return f"website-editor-{short_hash(original_document[:prefix_chars], 16)}"
