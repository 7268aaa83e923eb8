"""Dialogs for authorizing devices and adding key fingerprints."""

from __future__ import annotations

from typing import Any, Optional

from lanmouse.models import Signal


class _Dialog:
    def __init__(self, parent: Any = None) -> None:
        self.parent = parent
        self.visible = False
        self.closed = False

    def present(self) -> None:
        self.visible = True

    def close(self) -> None:
        self.visible = False
        self.closed = True


class AuthorizationDialog(_Dialog):
    """Asks whether a device with an unknown fingerprint may connect.

    ``confirm_clicked`` is emitted with the dialog and the trimmed fingerprint,
    ``cancel_clicked`` with the dialog alone.
    """

    def __init__(self, fingerprint: str, parent: Any = None) -> None:
        super().__init__(parent)
        self.fingerprint = fingerprint
        self.confirm_clicked = Signal("confirm-clicked")
        self.cancel_clicked = Signal("cancel-clicked")

    def confirm(self) -> None:
        self.confirm_clicked.emit(self, self.fingerprint.strip())

    def cancel(self) -> None:
        self.cancel_clicked.emit(self)

    def close(self) -> None:
        super().close()


class FingerprintDialog(_Dialog):
    """Collects a description and fingerprint for a key to authorize.

    When opened with a fingerprint it is filled in and not editable.
    ``confirm_clicked`` is emitted with the dialog, the trimmed description
    and the trimmed fingerprint.
    """

    def __init__(self, fingerprint: Optional[str] = None, parent: Any = None) -> None:
        super().__init__(parent)
        self.description = ""
        self.fingerprint = ""
        self.fingerprint_editable = True
        if fingerprint is not None:
            self.fingerprint = fingerprint
            self.fingerprint_editable = False
        self.confirm_clicked = Signal("confirm-clicked")

    def confirm(self) -> None:
        self.confirm_clicked.emit(
            self, self.description.strip(), self.fingerprint.strip()
        )

    def close(self) -> None:
        super().close()