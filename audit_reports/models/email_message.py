from __future__ import annotations

from dataclasses import dataclass, field

__all__ = [
    "Attachment",
    "OutgoingEmail",
    "split_addresses",
]


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "text/csv"


@dataclass(frozen=True)
class OutgoingEmail:
    """One message handed to a mail transport.

    to / cc keep the raw comma-joined strings from the sheet; transports split
    them with split_addresses() when they need individual recipients.
    """
    to: str
    subject: str
    html_body: str
    cc: str = ""
    sender_name: str | None = None
    attachments: tuple[Attachment, ...] = field(default_factory=tuple)

    @property
    def recipients(self) -> list[str]:
        return split_addresses(self.to) + split_addresses(self.cc)


def split_addresses(raw: str | None) -> list[str]:
    if not raw:
        return []
    parts = raw.replace(";", ",").split(",")
    return [p.strip() for p in parts if p.strip()]
