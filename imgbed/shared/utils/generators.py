"""ID and name generators (CUID for primary keys, unique object names for backends)."""

import os

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Used for every primary key, including the public image identifier.

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_unique_name(image_id: str, original_filename: str) -> str:
    """Return the object name stored on every backend: image id plus original extension.

    >>> generate_unique_name("abc", "cat.PNG")
    'abc.png'
    """
    _, ext = os.path.splitext(os.path.basename(original_filename or ""))
    return f"{image_id}{ext.lower()}"
