"""Application-wide constants."""

# MIME types accepted when a client asks for an upload URL
ALLOWED_UPLOAD_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "text/markdown",
    "text/csv",
)

# Roles allowed to publish files to every user
PUBLISHER_ROLES = {"admin", "contributor"}

# Placeholder link used when a citation URL cannot be issued
UNAVAILABLE_LINK = "unavailable"

PUBLIC_LABEL = "Public"
PRIVATE_LABEL = "Private"

INGESTION_QUEUE = "ingestion"
