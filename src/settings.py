"""Runtime settings for the order processing service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from email_notifications import DEFAULT_ADMIN_RECIPIENTS, DEFAULT_SENDER
from errors import ConfigurationError

DEFAULT_OUTPUT_DIR = "reports"


@dataclass(frozen=True)
class ProcessingSettings:
    output_dir: str = DEFAULT_OUTPUT_DIR
    default_strategy: Optional[str] = None
    notification_sender: str = DEFAULT_SENDER
    admin_recipients: Tuple[str, ...] = DEFAULT_ADMIN_RECIPIENTS

    @classmethod
    def from_env(cls) -> "ProcessingSettings":
        admin_recipients = DEFAULT_ADMIN_RECIPIENTS
        raw_recipients = os.getenv("ORDER_AUDIT_ADMIN_RECIPIENTS")
        if raw_recipients is not None:
            admin_recipients = tuple(r.strip() for r in raw_recipients.split(",") if r.strip())
            if not admin_recipients:
                raise ConfigurationError("ORDER_AUDIT_ADMIN_RECIPIENTS must list at least one address")
        return cls(
            output_dir=os.getenv("ORDER_AUDIT_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
            default_strategy=os.getenv("ORDER_AUDIT_DEFAULT_STRATEGY") or None,
            notification_sender=os.getenv("ORDER_AUDIT_SENDER") or DEFAULT_SENDER,
            admin_recipients=admin_recipients,
        )
