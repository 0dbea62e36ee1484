"""
Attachment Value Object - an image the sender wants to share, before upload.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Attachment:
    filename: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Extension without dot (lowercase), or empty string."""
        if "." in self.filename:
            return self.filename.rsplit(".", 1)[1].lower()
        return ""
