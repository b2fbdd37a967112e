"""ID generators."""

import uuid


def generate_uuid() -> str:
    """Generate a random UUID4 string.

    Automation and execution IDs are UUIDs because the API validates
    path parameters as UUIDs.

    Returns:
        A new UUID string in canonical 8-4-4-4-12 form.
    """
    return str(uuid.uuid4())
